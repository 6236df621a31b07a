# physio_booking/modules/appointments/models.py
from __future__ import annotations

import uuid
import datetime as dt
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    Date,
    Integer,
    String,
    ForeignKey,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from physio_booking.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class ApptStatus(str, PyEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    NO_SHOW = "no-show"
    CANCELLED = "cancelled"


class AppointmentType(str, PyEnum):
    INITIAL_ASSESSMENT = "initial-assessment"
    FOLLOW_UP = "follow-up"
    REHABILITATION = "rehabilitation"
    POST_OPERATIVE = "post-operative"


ALLOWED_DURATIONS = (30, 45, 60)

# Statuses that free the slot for someone else
VACATING_STATUSES = frozenset({ApptStatus.CANCELLED.value, ApptStatus.NO_SHOW.value})


class Appointment(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    A booked (therapist, patient, room, day, HH:MM, duration) slot.

    Therapist and patient names are denormalised so conflict payloads and
    listings never need a join.
    """

    __tablename__ = "appointments"

    therapist_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    therapist_name: Mapped[str] = mapped_column(String(120), nullable=False)

    patient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("patients.id", ondelete="RESTRICT"),
        nullable=False,
    )
    patient_name: Mapped[str] = mapped_column(String(120), nullable=False)
    patient_phone: Mapped[str] = mapped_column(String(32), nullable=False)

    appointment_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[str] = mapped_column(String(5), nullable=False)  # "HH:MM"
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    appointment_type: Mapped[str] = mapped_column(String(40), nullable=False)
    room: Mapped[str] = mapped_column(String(80), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApptStatus.PENDING.value,
        server_default=ApptStatus.PENDING.value,
    )

    medical_notes: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    special_requirements: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("duration IN (30, 45, 60)", name="duration_valid"),
        CheckConstraint(
            "status IN ('pending', 'completed', 'no-show', 'cancelled')",
            name="status_valid",
        ),
        # Last line against the check-then-insert race: one live booking per
        # room/day/start. A no-show still blocks new requests through the
        # availability check but may be replaced by a waiting-list promotion.
        Index(
            "uq_appointments_room_day_time_live",
            "room", "appointment_date", "time",
            unique=True,
            postgresql_where=text("status NOT IN ('cancelled', 'no-show')"),
            sqlite_where=text("status NOT IN ('cancelled', 'no-show')"),
        ),
        Index("ix_appointments_therapist_date", "therapist_id", "appointment_date"),
        Index("ix_appointments_date_time_room", "appointment_date", "time", "room"),
        Index("ix_appointments_patient", "patient_id"),
    )
