# physio_booking/modules/users/models.py
from __future__ import annotations

import uuid
from typing import Any, Optional
from enum import Enum as PyEnum
import datetime as dt

from sqlalchemy import (
    JSON,
    ForeignKey,
    Integer,
    String,
    CheckConstraint,
    UniqueConstraint,
    Index,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from physio_booking.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class AuditAction(PyEnum):
    ROLE_CHANGE = "role_change"
    USER_APPROVAL = "user_approval"
    USER_REJECTION = "user_rejection"
    USER_STATUS_CHANGE = "user_status_change"
    APPOINTMENT_CREATED = "appointment_created"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    WAITING_LIST_PROMOTED = "waiting_list_promoted"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    action: Mapped[str] = mapped_column(String(40), nullable=False)
    performed_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    target_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    old_value: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    new_value: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    details: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(server_default=func.now())

    __table_args__ = (Index("ix_audit_logs_created_at", "created_at"),)


class UserRole(PyEnum):
    THERAPIST = "therapist"
    ADMIN = "admin"


class UserStatus(PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    INACTIVE = "inactive"


class UserProfile(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Staff account (therapist or admin). Credentials live in the identity
    provider; this row carries role, approval status and booking stats.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)

    role: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=UserRole.THERAPIST.value
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=UserStatus.PENDING.value
    )

    license_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    specialization: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    total_appointments: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        CheckConstraint("role IN ('therapist', 'admin')", name="role_valid"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'active', 'inactive')",
            name="status_valid",
        ),
        Index("ix_users_role_status", "role", "status"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
