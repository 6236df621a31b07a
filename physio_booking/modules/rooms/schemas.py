# physio_booking/modules/rooms/schemas.py
from __future__ import annotations

import datetime as dt
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints
from pydantic.alias_generators import to_camel

RoomNameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=80)]


class RoomCreateRequest(BaseModel):
    name: RoomNameStr
    capacity: int = Field(default=1, ge=1)
    equipment: List[str] = []

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class RoomPublic(BaseModel):
    id: UUID
    name: str
    capacity: int
    equipment: List[str] = []
    is_active: bool
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
