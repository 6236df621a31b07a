# physio_booking/routers/rooms.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from physio_booking.core.errors import SchedulingError, to_http_exception
from physio_booking.core.permission import Caller
from physio_booking.dependencies import get_current_caller, get_room_repository
from physio_booking.modules.rooms.repository import SqlRoomRepository
from physio_booking.modules.rooms.schemas import RoomCreateRequest, RoomPublic
from physio_booking.modules.rooms.service import create_room_svc, list_rooms_svc

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("", response_model=List[RoomPublic], summary="List active rooms")
async def rooms_list(
    repo: SqlRoomRepository = Depends(get_room_repository),
    _: Caller = Depends(get_current_caller),
):
    return await list_rooms_svc(repo)


@router.post(
    "",
    response_model=RoomPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Create a room (admin)",
)
async def rooms_create(
    payload: RoomCreateRequest,
    repo: SqlRoomRepository = Depends(get_room_repository),
    caller: Caller = Depends(get_current_caller),
):
    try:
        return await create_room_svc(repo, payload, caller)
    except SchedulingError as e:
        raise to_http_exception(e)
