# physio_booking/modules/waiting_list/schemas.py
from __future__ import annotations

import datetime as dt
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from physio_booking.modules.appointments.models import AppointmentType


class WaitingListCreateRequest(BaseModel):
    """
    Queue a patient for a therapist's day. Priority is assigned server-side.
    """
    patient_id: UUID
    desired_date: dt.date
    desired_time: str
    appointment_type: AppointmentType
    duration: int
    room_preference: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class WaitingListEntryPublic(BaseModel):
    id: UUID
    therapist_id: UUID
    patient_id: UUID
    patient_name: str
    patient_phone: str
    desired_date: dt.date
    desired_time: str
    appointment_type: str
    duration: int
    room_preference: Optional[str] = None
    priority_number: int
    notes: Optional[str] = None
    date_added: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class WaitingListPromoteRequest(BaseModel):
    """
    Target slot for a manual promotion.
    """
    appointment_date: dt.date = Field(alias="date")
    time: str
    room: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True
