# physio_booking/modules/appointments/schemas.py
from __future__ import annotations

import datetime as dt
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from physio_booking.modules.appointments.models import AppointmentType, ApptStatus


class AppointmentCreateRequest(BaseModel):
    """
    Payload to book a slot.
    - therapist_id is taken from the caller, never from the client.
    - time/duration are validated by the scheduling layer (400, not 422).
    """
    patient_id: UUID
    appointment_date: dt.date = Field(alias="date")
    time: str
    duration: int
    appointment_type: AppointmentType
    room: str
    medical_notes: Optional[str] = None
    special_requirements: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class AppointmentUpdateRequest(BaseModel):
    """
    Partial update: only fields present in the body are applied.
    """
    status: Optional[ApptStatus] = None
    medical_notes: Optional[str] = None
    special_requirements: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class AppointmentPublic(BaseModel):
    id: UUID
    therapist_id: UUID
    therapist_name: str
    patient_id: UUID
    patient_name: str
    patient_phone: str
    appointment_date: dt.date = Field(alias="date")
    time: str
    duration: int
    appointment_type: str
    room: str
    status: str
    medical_notes: Optional[str] = None
    special_requirements: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

