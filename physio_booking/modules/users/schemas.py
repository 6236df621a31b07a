# physio_booking/modules/users/schemas.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class AdminAction(str, Enum):
    approve = "approve"
    reject = "reject"
    promote = "promote"
    demote = "demote"
    activate = "activate"
    deactivate = "deactivate"


class UserProfilePublic(BaseModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    role: str
    status: str
    license_number: Optional[str] = None
    specialization: Optional[str] = None
    phone_number: Optional[str] = None
    total_appointments: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class UserWithStats(UserProfilePublic):
    """
    Admin listing row: profile plus non-cancelled booking count.
    """
    appointment_count: int = 0


class AdminUserUpdateRequest(BaseModel):
    user_id: UUID
    action: AdminAction

    class Config:
        alias_generator = to_camel
        populate_by_name = True
