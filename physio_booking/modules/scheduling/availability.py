# physio_booking/modules/scheduling/availability.py
"""
Availability checker.

Decides whether (therapist, day, time, duration, room) can be booked:

    1. therapist daily cap        -> therapist_daily_limit (no alternatives)
    2. room overlap               -> room_conflict
    3. therapist overlap + buffer -> therapist_conflict
    4. otherwise available

Checks short-circuit on the first failure. Read-only; every call reads the
booking collection fresh from the repository.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

from physio_booking.core.config import settings
from physio_booking.core.errors import NotFoundError, ValidationError
from physio_booking.modules.appointments.models import ALLOWED_DURATIONS, Appointment
from physio_booking.modules.scheduling.intervals import TimeInterval, as_day, parse_hhmm
from physio_booking.modules.scheduling.repository import SchedulingRepository
from physio_booking.modules.scheduling.schemas import (
    AvailabilityResult,
    ConflictReason,
    ConflictingAppointment,
)
from physio_booking.modules.scheduling.suggestions import (
    suggest_alternative_rooms,
    suggest_alternative_times,
)

logger = logging.getLogger(__name__)


def validate_slot_request(time: str, duration: int) -> None:
    """
    Format checks done before touching storage.
    """
    parse_hhmm(time)
    if duration not in ALLOWED_DURATIONS:
        raise ValidationError("invalid_duration", "Duration must be 30, 45 or 60 minutes")


def _interval_of(booking: Appointment) -> TimeInterval:
    return TimeInterval.for_slot(booking.appointment_date, booking.time, booking.duration)


async def _with_alternatives(
    repo: SchedulingRepository,
    result: AvailabilityResult,
    day: date,
    time: str,
    duration: int,
    room: str,
) -> AvailabilityResult:
    result.alternative_times = suggest_alternative_times(day, time, duration)
    result.alternative_rooms = await suggest_alternative_rooms(repo, day, time, duration, room)
    return result


async def check_availability(
    repo: SchedulingRepository,
    *,
    therapist_id: UUID,
    day: Union[date, datetime],
    time: str,
    duration: int,
    room: str,
    exclude_booking_id: Optional[UUID] = None,
) -> AvailabilityResult:
    """
    Evaluate a requested slot.

    Notes:
    - `exclude_booking_id` leaves one booking out of every check (the
      booking being edited, or the one being vacated during promotion).
    - Raises ValidationError for a malformed time/duration and NotFoundError
      for an unknown or inactive room; conflicts are returned, not raised.
    """
    validate_slot_request(time, duration)
    day = as_day(day)

    room_row = await repo.get_room(room)
    if room_row is None or not room_row.is_active:
        raise NotFoundError("room_not_found", f"Room '{room}' does not exist or is inactive")

    # 1) Daily cap
    daily_count = await repo.count_active_bookings(therapist_id, day, exclude_booking_id)
    if daily_count >= settings.DAILY_APPOINTMENT_LIMIT:
        logger.info("Therapist %s at daily limit on %s (%d)", therapist_id, day, daily_count)
        return AvailabilityResult(
            is_available=False,
            reason=ConflictReason.THERAPIST_DAILY_LIMIT,
            message=(
                f"Therapist has reached daily limit of "
                f"{settings.DAILY_APPOINTMENT_LIMIT} appointments"
            ),
        )

    requested = TimeInterval.for_slot(day, time, duration)

    # 2) Room overlap, no buffer
    for booking in await repo.find_bookings_by_room_and_date(room, day):
        if booking.id == exclude_booking_id:
            continue
        if requested.overlaps(_interval_of(booking)):
            result = AvailabilityResult(
                is_available=False,
                reason=ConflictReason.ROOM_CONFLICT,
                message="Room is already booked at this time",
                conflicting_appointment=ConflictingAppointment(
                    therapist=booking.therapist_name,
                    patient=booking.patient_name,
                    time=booking.time,
                ),
            )
            return await _with_alternatives(repo, result, day, time, duration, room)

    # 3) Therapist overlap, requested interval padded by the buffer
    for booking in await repo.find_bookings_by_therapist_and_date(therapist_id, day):
        if booking.id == exclude_booking_id:
            continue
        if requested.overlaps_buffered(_interval_of(booking), settings.THERAPIST_BUFFER_MINUTES):
            result = AvailabilityResult(
                is_available=False,
                reason=ConflictReason.THERAPIST_CONFLICT,
                message="Therapist has a conflicting appointment",
                conflicting_appointment=ConflictingAppointment(
                    patient=booking.patient_name,
                    time=booking.time,
                    room=booking.room,
                ),
            )
            return await _with_alternatives(repo, result, day, time, duration, room)

    return AvailabilityResult(is_available=True, message="Time slot is available")
