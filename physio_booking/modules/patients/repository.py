# physio_booking/modules/patients/repository.py
from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from physio_booking.core.errors import ConflictError, ValidationError
from physio_booking.modules.patients.models import Patient

SEARCH_LIMIT = 20


class SqlPatientRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_patient(self, patient_id: UUID) -> Optional[Patient]:
        return await self.session.get(Patient, patient_id)

    async def get_patient_by_mrn(self, mrn: str) -> Optional[Patient]:
        stmt = select(Patient).where(Patient.medical_record_number == mrn)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def create_patient(self, patient: Patient) -> Patient:
        """
        Insert and return the persisted patient.
        Unique MRN violations surface here as ConflictError.
        """
        try:
            async with self.session.begin_nested():
                self.session.add(patient)
        except IntegrityError as exc:
            message = str(exc.orig).lower() if exc.orig else str(exc).lower()
            if "uq_patients_mrn" in message or "unique" in message:
                raise ConflictError(
                    "patient_mrn_exists",
                    "Patient with this medical record number already exists",
                ) from exc
            raise ValidationError("invalid_patient_data") from exc
        await self.session.refresh(patient)
        return patient

    async def search_patients(
        self,
        *,
        q: Optional[str] = None,
        medical_record_number: Optional[str] = None,
        phone_number: Optional[str] = None,
        limit: int = SEARCH_LIMIT,
    ) -> Sequence[Patient]:
        conditions = []

        # Search (ILIKE on names, MRN and phone)
        if q:
            term = f"%{q.strip().lower()}%"
            conditions.append(
                or_(
                    func.lower(Patient.first_name).like(term),
                    func.lower(Patient.last_name).like(term),
                    func.lower(Patient.medical_record_number).like(term),
                    Patient.phone_number.like(term),
                )
            )
        if medical_record_number:
            conditions.append(Patient.medical_record_number == medical_record_number)
        if phone_number:
            conditions.append(Patient.phone_number == phone_number)

        stmt = (
            select(Patient)
            .where(*conditions)
            .order_by(Patient.created_at.desc(), Patient.id)
            .limit(limit)
        )
        return (await self.session.execute(stmt)).scalars().all()
