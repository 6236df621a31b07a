# physio_booking/modules/patients/models.py
from __future__ import annotations

import uuid
import datetime as dt
from typing import List, Optional

from sqlalchemy import Date, ForeignKey, String, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from physio_booking.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class Patient(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    __tablename__ = "patients"

    medical_record_number: Mapped[str] = mapped_column(String(40), nullable=False)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    date_of_birth: Mapped[dt.date] = mapped_column(Date, nullable=False)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    insurance_provider: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    insurance_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    medical_notes: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    history: Mapped[List["PatientHistoryEntry"]] = relationship(
        back_populates="patient",
        cascade="all, delete-orphan",
        order_by="PatientHistoryEntry.date",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("medical_record_number", name="uq_patients_mrn"),
        Index("ix_patients_phone", "phone_number"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class PatientHistoryEntry(UUIDPKMixin, ReprMixin, Base):
    """
    One line of a patient's appointment history, appended whenever a booking
    is created for them (directly or by waiting-list promotion).
    """

    __tablename__ = "patient_history"

    patient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # No FK: the booking may later be hard-deleted while history is kept
    appointment_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    therapist: Mapped[str] = mapped_column(String(120), nullable=False)
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    patient: Mapped[Optional[Patient]] = relationship(back_populates="history")
