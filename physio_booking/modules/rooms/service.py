# physio_booking/modules/rooms/service.py
from __future__ import annotations

import logging
from typing import List

from physio_booking.core.errors import ConflictError
from physio_booking.core.permission import ADMIN, Caller, require_capability
from physio_booking.modules.rooms.models import Room
from physio_booking.modules.rooms.repository import SqlRoomRepository
from physio_booking.modules.rooms.schemas import RoomCreateRequest, RoomPublic

logger = logging.getLogger(__name__)

DEFAULT_ROOMS = (
    ("Treatment Room 1", ["treatment table", "exercise ball"]),
    ("Treatment Room 2", ["treatment table", "ultrasound"]),
    ("Gym", ["parallel bars", "treadmill", "weights"]),
    ("Hydrotherapy Pool", ["pool hoist"]),
)


def _to_public(room: Room) -> RoomPublic:
    return RoomPublic.model_validate(room)


async def list_rooms_svc(repo: SqlRoomRepository) -> List[RoomPublic]:
    return [_to_public(r) for r in await repo.list_active_rooms()]


async def create_room_svc(
    repo: SqlRoomRepository,
    payload: RoomCreateRequest,
    caller: Caller,
) -> RoomPublic:
    """
    Admin only. Room names are unique; bookings reference rooms by name.
    """
    require_capability(caller, ADMIN)

    if await repo.get_room(payload.name):
        raise ConflictError("room_name_exists", "Room with this name already exists")

    room = await repo.create_room(
        Room(
            name=payload.name,
            capacity=payload.capacity,
            equipment=list(payload.equipment),
            is_active=True,
        )
    )
    logger.info("Room %r created by %s", room.name, caller.user_id)
    return _to_public(room)
