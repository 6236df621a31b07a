# physio_booking/modules/waiting_list/models.py
from __future__ import annotations

import uuid
import datetime as dt
from typing import Optional

from sqlalchemy import Date, ForeignKey, Integer, String, Index, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from physio_booking.db.base import Base, UUIDPKMixin, ReprMixin


class WaitingListEntry(UUIDPKMixin, ReprMixin, Base):
    """
    A patient waiting for a slot with one therapist on one day.
    priority_number is ascending (1 = first in line) per (therapist_id, desired_date).
    """

    __tablename__ = "waiting_list"

    therapist_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), nullable=False
    )
    patient_name: Mapped[str] = mapped_column(String(120), nullable=False)
    patient_phone: Mapped[str] = mapped_column(String(32), nullable=False)

    desired_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    desired_time: Mapped[str] = mapped_column(String(5), nullable=False)
    appointment_type: Mapped[str] = mapped_column(String(40), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    room_preference: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    priority_number: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    date_added: Mapped[dt.datetime] = mapped_column(nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "therapist_id", "desired_date", "priority_number",
            name="uq_waiting_list_therapist_day_priority",
        ),
        Index("ix_waiting_list_therapist_day_priority", "therapist_id", "desired_date", "priority_number"),
    )
