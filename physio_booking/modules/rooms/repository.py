# physio_booking/modules/rooms/repository.py
from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from physio_booking.core.errors import ConflictError
from physio_booking.modules.rooms.models import Room


class SqlRoomRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_room(self, name: str) -> Optional[Room]:
        stmt = select(Room).where(Room.name == name)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def list_active_rooms(self) -> Sequence[Room]:
        stmt = select(Room).where(Room.is_active.is_(True)).order_by(Room.name)
        return (await self.session.execute(stmt)).scalars().all()

    async def create_room(self, room: Room) -> Room:
        try:
            async with self.session.begin_nested():
                self.session.add(room)
        except IntegrityError as exc:
            raise ConflictError("room_name_exists", "Room with this name already exists") from exc
        await self.session.refresh(room)
        return room
