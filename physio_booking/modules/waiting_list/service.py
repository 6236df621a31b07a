# physio_booking/modules/waiting_list/service.py
from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from physio_booking.core.errors import NotFoundError
from physio_booking.core.permission import (
    THERAPIST,
    Caller,
    ensure_owner_or_admin,
    require_booking_therapist,
    require_capability,
)
from physio_booking.modules.appointments.schemas import AppointmentPublic
from physio_booking.modules.notifications import PatientNotifier, notify_quietly
from physio_booking.modules.scheduling.availability import validate_slot_request
from physio_booking.modules.scheduling.promotion import convert_entry_to_booking
from physio_booking.modules.scheduling.repository import SchedulingRepository
from physio_booking.modules.waiting_list.models import WaitingListEntry
from physio_booking.modules.waiting_list.schemas import (
    WaitingListCreateRequest,
    WaitingListEntryPublic,
    WaitingListPromoteRequest,
)

logger = logging.getLogger(__name__)


def _to_public(entry: WaitingListEntry) -> WaitingListEntryPublic:
    return WaitingListEntryPublic.model_validate(entry)


async def _get_owned(repo: SchedulingRepository, entry_id: UUID, caller: Caller) -> WaitingListEntry:
    entry = await repo.get_waiting_entry(entry_id)
    if entry is None:
        raise NotFoundError("waiting_entry_not_found")
    ensure_owner_or_admin(caller, entry.therapist_id)
    return entry


async def add_to_waiting_list_svc(
    repo: SchedulingRepository,
    payload: WaitingListCreateRequest,
    caller: Caller,
) -> WaitingListEntryPublic:
    """
    Queue a patient behind the calling therapist's existing entries for that
    day: priority_number = current max + 1 (1 for an empty day).
    """
    require_booking_therapist(caller)
    validate_slot_request(payload.desired_time, payload.duration)

    patient = await repo.get_patient(payload.patient_id)
    if patient is None:
        raise NotFoundError("patient_not_found")

    priority = await repo.max_priority_number(caller.user_id, payload.desired_date) + 1
    entry = await repo.add_waiting_entry(
        WaitingListEntry(
            therapist_id=caller.user_id,
            patient_id=patient.id,
            patient_name=patient.full_name,
            patient_phone=patient.phone_number,
            desired_date=payload.desired_date,
            desired_time=payload.desired_time,
            appointment_type=payload.appointment_type.value,
            duration=payload.duration,
            room_preference=payload.room_preference,
            priority_number=priority,
            notes=payload.notes,
        )
    )
    logger.info(
        "Waiting entry %s queued for therapist %s on %s at priority %d",
        entry.id, caller.user_id, entry.desired_date, priority,
    )
    return _to_public(entry)


async def list_waiting_list_svc(
    repo: SchedulingRepository,
    caller: Caller,
    therapist_id: Optional[UUID] = None,
) -> List[WaitingListEntryPublic]:
    """
    - therapist => own entries only
    - admin => all, or one therapist when therapist_id is given
    """
    if not caller.is_admin:
        therapist_id = caller.user_id
    return [_to_public(e) for e in await repo.list_waiting_entries(therapist_id)]


async def remove_from_waiting_list_svc(
    repo: SchedulingRepository,
    entry_id: UUID,
    caller: Caller,
) -> None:
    entry = await _get_owned(repo, entry_id, caller)
    await repo.delete_waiting_entry(entry.id)
    logger.info("Waiting entry %s removed by %s", entry.id, caller.user_id)


async def promote_waiting_entry_svc(
    repo: SchedulingRepository,
    entry_id: UUID,
    payload: WaitingListPromoteRequest,
    caller: Caller,
    notifier: Optional[PatientNotifier] = None,
) -> AppointmentPublic:
    """
    Manual promotion into a slot the therapist picked.

    Unlike the automatic path, failures propagate: a taken slot answers 409
    with the availability result, a missing patient 404.
    """
    require_capability(caller, THERAPIST)
    entry = await _get_owned(repo, entry_id, caller)
    validate_slot_request(payload.time, entry.duration)

    therapist = await repo.get_therapist(entry.therapist_id)
    therapist_name = therapist.full_name if therapist is not None else caller.full_name

    booking = await convert_entry_to_booking(
        repo,
        entry,
        day=payload.appointment_date,
        time=payload.time,
        room=payload.room,
        therapist_name=therapist_name,
        performed_by=caller.user_id,
    )
    await notify_quietly(
        notifier,
        booking.patient_phone,
        f"Appointment available! You're booked for "
        f"{booking.appointment_date.isoformat()} at {booking.time}",
    )
    return AppointmentPublic.model_validate(booking)
