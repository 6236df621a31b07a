# physio_booking/modules/patients/service.py
from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from physio_booking.core.errors import ConflictError, NotFoundError
from physio_booking.core.permission import ADMIN, THERAPIST, Caller, require_capability
from physio_booking.modules.patients.models import Patient
from physio_booking.modules.patients.repository import SqlPatientRepository
from physio_booking.modules.patients.schemas import PatientCreateRequest, PatientPublic

logger = logging.getLogger(__name__)


def _to_public(patient: Patient) -> PatientPublic:
    return PatientPublic.model_validate(patient)


async def create_patient_svc(
    repo: SqlPatientRepository,
    payload: PatientCreateRequest,
    caller: Caller,
) -> PatientPublic:
    """
    Register a patient. Therapists and admins only; MRN must be unique.
    """
    require_capability(caller, THERAPIST, ADMIN)

    # Early 409 before hitting the unique constraint
    if await repo.get_patient_by_mrn(payload.medical_record_number):
        raise ConflictError(
            "patient_mrn_exists",
            "Patient with this medical record number already exists",
        )

    patient = await repo.create_patient(
        Patient(
            medical_record_number=payload.medical_record_number,
            first_name=payload.first_name,
            last_name=payload.last_name,
            date_of_birth=payload.date_of_birth,
            phone_number=payload.phone_number,
            email=payload.email.lower() if payload.email else None,
            insurance_provider=payload.insurance_provider,
            insurance_number=payload.insurance_number,
            medical_notes=payload.medical_notes,
        )
    )
    logger.info("Patient %s registered by %s", patient.id, caller.user_id)
    return _to_public(patient)


async def search_patients_svc(
    repo: SqlPatientRepository,
    *,
    q: Optional[str] = None,
    medical_record_number: Optional[str] = None,
    phone_number: Optional[str] = None,
) -> List[PatientPublic]:
    rows = await repo.search_patients(
        q=q,
        medical_record_number=medical_record_number,
        phone_number=phone_number,
    )
    return [_to_public(p) for p in rows]


async def get_patient_svc(repo: SqlPatientRepository, patient_id: UUID) -> PatientPublic:
    patient = await repo.get_patient(patient_id)
    if patient is None:
        raise NotFoundError("patient_not_found")
    return _to_public(patient)
