# physio_booking/routers/waiting_list.py
from __future__ import annotations

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
from physio_booking.modules.appointments.schemas import AppointmentPublic
from physio_booking.modules.notifications import PatientNotifier, get_notifier
from physio_booking.modules.scheduling.repository import SchedulingRepository
from physio_booking.modules.scheduling.schemas import ConflictResponse
from physio_booking.modules.waiting_list.schemas import (
    WaitingListCreateRequest,
    WaitingListEntryPublic,
    WaitingListPromoteRequest,
)
from physio_booking.modules.waiting_list.service import (
    add_to_waiting_list_svc,
    list_waiting_list_svc,
    promote_waiting_entry_svc,
    remove_from_waiting_list_svc,
)

router = APIRouter(prefix="/waiting-list", tags=["waiting-list"])


@router.get("", response_model=List[WaitingListEntryPublic], summary="List waiting entries")
async def waiting_list_get(
    therapist_id: Optional[UUID] = Query(None, alias="therapistId"),
    repo: SchedulingRepository = Depends(get_repository),
    caller: Caller = Depends(get_current_caller),
):
    return await list_waiting_list_svc(repo, caller, therapist_id)


@router.post(
    "",
    response_model=WaitingListEntryPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Queue a patient for a therapist's day",
)
async def waiting_list_add(
    payload: WaitingListCreateRequest,
    repo: SchedulingRepository = Depends(get_repository),
    caller: Caller = Depends(get_current_caller),
):
    try:
        return await add_to_waiting_list_svc(repo, payload, caller)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.delete("/{entry_id}", summary="Remove a waiting entry")
async def waiting_list_remove(
    entry_id: UUID,
    repo: SchedulingRepository = Depends(get_repository),
    caller: Caller = Depends(get_current_caller),
):
    try:
        await remove_from_waiting_list_svc(repo, entry_id, caller)
    except SchedulingError as e:
        raise to_http_exception(e)
    return {"message": "Removed from waiting list successfully"}


@router.post(
    "/{entry_id}/promote",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_409_CONFLICT: {"model": ConflictResponse}},
    summary="Turn a waiting entry into a booking at a chosen slot",
)
async def waiting_list_promote(
    entry_id: UUID,
    payload: WaitingListPromoteRequest,
    repo: SchedulingRepository = Depends(get_repository),
    caller: Caller = Depends(get_current_caller),
    notifier: PatientNotifier = Depends(get_notifier),
):
    try:
        return await promote_waiting_entry_svc(repo, entry_id, payload, caller, notifier)
    except ConflictError as e:
        return conflict_response(e)
    except SchedulingError as e:
        raise to_http_exception(e)
