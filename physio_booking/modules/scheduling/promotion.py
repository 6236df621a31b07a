# physio_booking/modules/scheduling/promotion.py
"""
Waiting-list promotion engine.

When a booking is cancelled, marked no-show or deleted, the single
highest-priority waiting entry for the same therapist and day is turned
into a pending booking at the vacated time and room. One vacancy, at most
one promotion.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional
from uuid import UUID

from physio_booking.core.errors import ConflictError, NotFoundError
from physio_booking.modules.appointments.models import Appointment, ApptStatus
from physio_booking.modules.appointments.persistence import persist_new_booking
from physio_booking.modules.notifications import PatientNotifier, notify_quietly
from physio_booking.modules.scheduling.availability import check_availability
from physio_booking.modules.scheduling.repository import SchedulingRepository
from physio_booking.modules.users.models import AuditAction
from physio_booking.modules.waiting_list.models import WaitingListEntry

logger = logging.getLogger(__name__)


@dataclass
class PromotionOutcome:
    """
    Result of one promotion attempt. Never raised: `error` holds what went
    wrong, `skipped_reason` why nothing was promoted.
    """

    promoted: Optional[Appointment] = None
    entry_id: Optional[UUID] = None
    skipped_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def convert_entry_to_booking(
    repo: SchedulingRepository,
    entry: WaitingListEntry,
    *,
    day: date,
    time: str,
    room: str,
    therapist_name: str,
    performed_by: Optional[UUID] = None,
    exclude_booking_id: Optional[UUID] = None,
) -> Appointment:
    """
    Re-validate the slot for this entry, create the pending booking and
    remove the entry from the waiting list.

    Raises ConflictError when the slot is no longer bookable for the entry's
    duration, NotFoundError when the patient record is gone.
    """
    async with repo.lock_slot(entry.therapist_id, room, day):
        result = await check_availability(
            repo,
            therapist_id=entry.therapist_id,
            day=day,
            time=time,
            duration=entry.duration,
            room=room,
            exclude_booking_id=exclude_booking_id,
        )
        if not result.is_available:
            raise ConflictError(result.reason.value, result.message, result=result)

        patient = await repo.get_patient(entry.patient_id)
        if patient is None:
            raise NotFoundError("patient_not_found")

        booking = await persist_new_booking(
            repo,
            Appointment(
                therapist_id=entry.therapist_id,
                therapist_name=therapist_name,
                patient_id=patient.id,
                patient_name=patient.full_name,
                patient_phone=patient.phone_number,
                appointment_date=day,
                time=time,
                duration=entry.duration,
                appointment_type=entry.appointment_type,
                room=room,
                status=ApptStatus.PENDING.value,
                medical_notes=entry.notes,
            ),
        )
        await repo.delete_waiting_entry(entry.id)

    await repo.record_audit(
        AuditAction.WAITING_LIST_PROMOTED.value,
        performed_by=performed_by or entry.therapist_id,
        target_user_id=entry.therapist_id,
        old_value={"waitingListEntryId": str(entry.id), "priorityNumber": entry.priority_number},
        new_value={"appointmentId": str(booking.id), "date": day.isoformat(), "time": time, "room": room},
        details=f"Promoted {booking.patient_name} from waiting list",
    )
    return booking


async def promote_from_waiting_list(
    repo: SchedulingRepository,
    vacated: Appointment,
    *,
    notifier: Optional[PatientNotifier] = None,
) -> PromotionOutcome:
    """
    Fill the slot freed by `vacated` with the top waiting entry.

    Runs inside a savepoint; any failure is logged and returned in the
    outcome, never propagated, so the cancellation/deletion that triggered
    it stays committed.

    A no-show keeps its row and still blocks ordinary requests, so refilling
    one leaves two non-cancelled bookings on the same room interval. Room
    disjointness after a refill therefore holds over live bookings that are
    not no-shows, the same set the unique room/day/time index covers.
    """
    therapist_id = vacated.therapist_id
    day = vacated.appointment_date
    entry_id: Optional[UUID] = None
    try:
        entries = await repo.find_waiting_entries(therapist_id, day)
        if not entries:
            return PromotionOutcome(skipped_reason="no_waiting_entries")

        # Ordered by priority_number, then date_added: only the head is tried
        entry = entries[0]
        entry_id = entry.id
        async with repo.savepoint():
            booking = await convert_entry_to_booking(
                repo,
                entry,
                day=day,
                time=vacated.time,
                room=vacated.room,
                therapist_name=vacated.therapist_name,
                exclude_booking_id=vacated.id,
            )
    except ConflictError as exc:
        logger.info(
            "Waiting entry %s not promoted into %s %s %s: %s",
            entry_id, vacated.room, day, vacated.time, exc.code,
        )
        return PromotionOutcome(entry_id=entry_id, skipped_reason=exc.code)
    except Exception as exc:
        logger.exception(
            "Waiting-list promotion failed for therapist %s on %s", therapist_id, day
        )
        return PromotionOutcome(entry_id=entry_id, error=str(exc) or exc.__class__.__name__)

    logger.info(
        "Promoted waiting entry %s into appointment %s (%s %s %s)",
        entry_id, booking.id, booking.room, day, booking.time,
    )
    await notify_quietly(
        notifier,
        booking.patient_phone,
        f"Appointment available! You're booked for {day.isoformat()} at {booking.time}",
    )
    return PromotionOutcome(promoted=booking, entry_id=entry_id)
