# physio_booking/routers/appointments.py
from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from physio_booking.core.errors import (
    ConflictError,
    SchedulingError,
    conflict_response,
    to_http_exception,
)
from physio_booking.core.permission import Caller
from physio_booking.dependencies import get_current_caller, get_repository
from physio_booking.modules.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentPublic,
    AppointmentUpdateRequest,
)
from physio_booking.modules.appointments.service import (
    create_appointment_svc,
    delete_appointment_svc,
    get_appointment_svc,
    list_appointments_svc,
    update_appointment_svc,
)
from physio_booking.modules.notifications import PatientNotifier, get_notifier
from physio_booking.modules.scheduling.repository import SchedulingRepository
from physio_booking.modules.scheduling.schemas import ConflictResponse

router = APIRouter(tags=["appointments"])


@router.get(
    "/appointments",
    response_model=List[AppointmentPublic],
    summary="List appointments (therapists see their own)",
)
async def appointments_list(
    day: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    therapist_id: Optional[UUID] = Query(None, alias="therapistId"),
    repo: SchedulingRepository = Depends(get_repository),
    caller: Caller = Depends(get_current_caller),
):
    return await list_appointments_svc(
        repo,
        caller,
        day=day,
        start=start_date,
        end=end_date,
        therapist_id=therapist_id,
    )


@router.post(
    "/appointments",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_409_CONFLICT: {"model": ConflictResponse}},
    summary="Book a slot (availability checked first)",
)
async def appointments_create(
    payload: AppointmentCreateRequest,
    repo: SchedulingRepository = Depends(get_repository),
    caller: Caller = Depends(get_current_caller),
):
    try:
        return await create_appointment_svc(repo, payload, caller)
    except ConflictError as e:
        return conflict_response(e)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get(
    "/appointments/{appointment_id}",
    response_model=AppointmentPublic,
    summary="Get one appointment",
)
async def appointments_get(
    appointment_id: UUID,
    repo: SchedulingRepository = Depends(get_repository),
    caller: Caller = Depends(get_current_caller),
):
    try:
        return await get_appointment_svc(repo, appointment_id, caller)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.put(
    "/appointments/{appointment_id}",
    response_model=AppointmentPublic,
    summary="Update status / notes; cancelling or no-show fills from the waiting list",
)
async def appointments_update(
    appointment_id: UUID,
    payload: AppointmentUpdateRequest,
    repo: SchedulingRepository = Depends(get_repository),
    caller: Caller = Depends(get_current_caller),
    notifier: PatientNotifier = Depends(get_notifier),
):
    try:
        return await update_appointment_svc(repo, appointment_id, payload, caller, notifier)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.delete(
    "/appointments/{appointment_id}",
    summary="Delete an appointment and fill its slot from the waiting list",
)
async def appointments_delete(
    appointment_id: UUID,
    repo: SchedulingRepository = Depends(get_repository),
    caller: Caller = Depends(get_current_caller),
    notifier: PatientNotifier = Depends(get_notifier),
):
    try:
        await delete_appointment_svc(repo, appointment_id, caller, notifier)
    except SchedulingError as e:
        raise to_http_exception(e)
    return {"message": "Appointment deleted successfully"}
