# physio_booking/modules/appointments/service.py
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from physio_booking.core.errors import (
    CompletedAppointmentError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from physio_booking.core.permission import (
    Caller,
    ensure_owner_or_admin,
    require_booking_therapist,
)
from physio_booking.modules.appointments.models import (
    VACATING_STATUSES,
    Appointment,
    ApptStatus,
)
from physio_booking.modules.appointments.persistence import persist_new_booking
from physio_booking.modules.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentPublic,
    AppointmentUpdateRequest,
)
from physio_booking.modules.notifications import PatientNotifier
from physio_booking.modules.scheduling.availability import (
    check_availability,
    validate_slot_request,
)
from physio_booking.modules.scheduling.promotion import (
    PromotionOutcome,
    promote_from_waiting_list,
)
from physio_booking.modules.scheduling.repository import SchedulingRepository
from physio_booking.modules.users.models import AuditAction

logger = logging.getLogger(__name__)


def _to_public(appt: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(appt)


async def _get_owned(repo: SchedulingRepository, appointment_id: UUID, caller: Caller) -> Appointment:
    appt = await repo.get_booking(appointment_id)
    if appt is None:
        raise NotFoundError("appointment_not_found")
    ensure_owner_or_admin(caller, appt.therapist_id)
    return appt


def _check_transition(current: str, new: str) -> None:
    """
    pending -> completed | cancelled | no-show. Everything else is final.
    """
    if current != ApptStatus.PENDING.value:
        raise InvalidTransitionError(
            "invalid_status_transition",
            f"Cannot change status from '{current}' to '{new}'",
        )


# CREATE
async def create_appointment_svc(
    repo: SchedulingRepository,
    payload: AppointmentCreateRequest,
    caller: Caller,
) -> AppointmentPublic:
    """
    Book a slot for the calling therapist.

    Logic:
    - Only approved/active therapists may book.
    - Slot is checked (daily cap, room, therapist buffer) under lock_slot,
      then inserted as pending.
    - Patient history, therapist counter and audit are written in the same
      transaction.
    """
    require_booking_therapist(caller)
    validate_slot_request(payload.time, payload.duration)

    async with repo.lock_slot(caller.user_id, payload.room, payload.appointment_date):
        result = await check_availability(
            repo,
            therapist_id=caller.user_id,
            day=payload.appointment_date,
            time=payload.time,
            duration=payload.duration,
            room=payload.room,
        )
        if not result.is_available:
            raise ConflictError("time_slot_not_available", "Time slot not available", result=result)

        patient = await repo.get_patient(payload.patient_id)
        if patient is None:
            raise NotFoundError("patient_not_found")

        appt = await persist_new_booking(
            repo,
            Appointment(
                therapist_id=caller.user_id,
                therapist_name=caller.full_name,
                patient_id=patient.id,
                patient_name=patient.full_name,
                patient_phone=patient.phone_number,
                appointment_date=payload.appointment_date,
                time=payload.time,
                duration=payload.duration,
                appointment_type=payload.appointment_type.value,
                room=payload.room,
                status=ApptStatus.PENDING.value,
                medical_notes=payload.medical_notes,
                special_requirements=payload.special_requirements,
            ),
        )

    await repo.record_audit(
        AuditAction.APPOINTMENT_CREATED.value,
        performed_by=caller.user_id,
        target_user_id=caller.user_id,
        new_value={
            "appointmentId": str(appt.id),
            "date": appt.appointment_date.isoformat(),
            "time": appt.time,
            "room": appt.room,
        },
        details=f"Booked {appt.patient_name}",
    )
    logger.info("Appointment %s booked by %s", appt.id, caller.user_id)
    return _to_public(appt)


# READ
async def get_appointment_svc(
    repo: SchedulingRepository,
    appointment_id: UUID,
    caller: Caller,
) -> AppointmentPublic:
    return _to_public(await _get_owned(repo, appointment_id, caller))


async def list_appointments_svc(
    repo: SchedulingRepository,
    caller: Caller,
    *,
    day: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    therapist_id: Optional[UUID] = None,
) -> List[AppointmentPublic]:
    """
    - therapist => own bookings only
    - admin => all, or one therapist when therapist_id is given
    """
    if not caller.is_admin:
        therapist_id = caller.user_id
    if day is not None:
        start = end = day
    rows = await repo.list_bookings(therapist_id=therapist_id, start=start, end=end)
    return [_to_public(a) for a in rows]


# UPDATE
async def update_appointment_svc(
    repo: SchedulingRepository,
    appointment_id: UUID,
    payload: AppointmentUpdateRequest,
    caller: Caller,
    notifier: Optional[PatientNotifier] = None,
) -> AppointmentPublic:
    """
    Apply status / notes changes.

    A completed booking is frozen. Moving into cancelled or no-show hands the
    slot to the waiting list; the promotion result never fails this call.
    """
    appt = await _get_owned(repo, appointment_id, caller)
    if appt.status == ApptStatus.COMPLETED.value:
        raise CompletedAppointmentError(
            "cannot_modify_completed_appointment",
            "Cannot modify completed appointments",
        )

    fields = payload.model_fields_set
    old_status = appt.status
    vacated = False

    if "status" in fields and payload.status is not None and payload.status.value != old_status:
        new_status = payload.status.value
        _check_transition(old_status, new_status)
        appt.status = new_status
        vacated = new_status in VACATING_STATUSES

    if "medical_notes" in fields:
        appt.medical_notes = payload.medical_notes
    if "special_requirements" in fields:
        appt.special_requirements = payload.special_requirements

    appt = await repo.save_booking(appt)

    if vacated:
        await repo.record_audit(
            AuditAction.APPOINTMENT_CANCELLED.value,
            performed_by=caller.user_id,
            target_user_id=appt.therapist_id,
            old_value={"status": old_status},
            new_value={"status": appt.status},
            details=f"Appointment {appt.id} marked {appt.status}",
        )
        await promote_from_waiting_list(repo, appt, notifier=notifier)

    return _to_public(appt)


# DELETE
async def delete_appointment_svc(
    repo: SchedulingRepository,
    appointment_id: UUID,
    caller: Caller,
    notifier: Optional[PatientNotifier] = None,
) -> PromotionOutcome:
    """
    Hard delete, then offer the slot to the waiting list. Runs for every
    status: if the slot was already refilled after a cancellation, the
    availability re-check inside the promotion skips with room_conflict.
    """
    appt = await _get_owned(repo, appointment_id, caller)
    if appt.status == ApptStatus.COMPLETED.value:
        raise CompletedAppointmentError(
            "cannot_delete_completed_appointment",
            "Cannot delete completed appointments",
        )

    await repo.delete_booking(appt.id)
    await repo.record_audit(
        AuditAction.APPOINTMENT_CANCELLED.value,
        performed_by=caller.user_id,
        target_user_id=appt.therapist_id,
        old_value={"status": appt.status},
        details=f"Appointment {appt.id} deleted",
    )
    logger.info("Appointment %s deleted by %s", appt.id, caller.user_id)

    return await promote_from_waiting_list(repo, appt, notifier=notifier)
