# physio_booking/modules/scheduling/schemas.py
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ConflictReason(str, Enum):
    THERAPIST_DAILY_LIMIT = "therapist_daily_limit"
    ROOM_CONFLICT = "room_conflict"
    THERAPIST_CONFLICT = "therapist_conflict"


class ConflictingAppointment(BaseModel):
    """
    Public fields of the booking that blocked the request.
    Room conflicts expose therapist/patient/time; therapist conflicts
    expose patient/time/room.
    """
    therapist: Optional[str] = None
    patient: Optional[str] = None
    time: Optional[str] = None
    room: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class AvailabilityResult(BaseModel):
    is_available: bool
    reason: Optional[ConflictReason] = None
    message: Optional[str] = None
    conflicting_appointment: Optional[ConflictingAppointment] = None
    alternative_times: Optional[List[str]] = None
    alternative_rooms: Optional[List[str]] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ConflictResponse(BaseModel):
    """
    409 body returned when a booking request is rejected.
    """
    error: str
    reason: Optional[ConflictReason] = None
    message: Optional[str] = None
    conflicting_appointment: Optional[ConflictingAppointment] = None
    alternative_times: List[str] = []
    alternative_rooms: List[str] = []

    class Config:
        alias_generator = to_camel
        populate_by_name = True
