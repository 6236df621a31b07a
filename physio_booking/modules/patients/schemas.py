# physio_booking/modules/patients/schemas.py
from __future__ import annotations

import datetime as dt
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel

NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
MrnStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=40)]
PhoneStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=32)]


class PatientCreateRequest(BaseModel):
    medical_record_number: MrnStr
    first_name: NameStr
    last_name: NameStr
    date_of_birth: dt.date
    phone_number: PhoneStr
    email: Optional[EmailStr] = None
    insurance_provider: Optional[str] = None
    insurance_number: Optional[str] = None
    medical_notes: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class PatientHistoryItem(BaseModel):
    appointment_id: UUID
    history_date: dt.date = Field(alias="date")
    therapist: str
    type: str
    status: str

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class PatientPublic(BaseModel):
    id: UUID
    medical_record_number: str
    first_name: str
    last_name: str
    date_of_birth: dt.date
    phone_number: str
    email: Optional[str] = None
    insurance_provider: Optional[str] = None
    insurance_number: Optional[str] = None
    medical_notes: Optional[str] = None
    history: List[PatientHistoryItem] = []
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
