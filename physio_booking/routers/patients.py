# physio_booking/routers/patients.py
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from physio_booking.core.errors import SchedulingError, to_http_exception
from physio_booking.core.permission import Caller
from physio_booking.dependencies import get_current_caller, get_patient_repository
from physio_booking.modules.patients.repository import SqlPatientRepository
from physio_booking.modules.patients.schemas import PatientCreateRequest, PatientPublic
from physio_booking.modules.patients.service import (
    create_patient_svc,
    get_patient_svc,
    search_patients_svc,
)

router = APIRouter(prefix="/patients", tags=["patients"])


@router.get("", response_model=List[PatientPublic], summary="Search patients (max 20)")
async def patients_search(
    q: Optional[str] = Query(None, description="Case-insensitive match on name, MRN or phone"),
    medical_record_number: Optional[str] = Query(None, alias="medicalRecordNumber"),
    phone_number: Optional[str] = Query(None, alias="phoneNumber"),
    repo: SqlPatientRepository = Depends(get_patient_repository),
    _: Caller = Depends(get_current_caller),
):
    return await search_patients_svc(
        repo,
        q=q,
        medical_record_number=medical_record_number,
        phone_number=phone_number,
    )


@router.post(
    "",
    response_model=PatientPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Register a patient",
)
async def patients_create(
    payload: PatientCreateRequest,
    repo: SqlPatientRepository = Depends(get_patient_repository),
    caller: Caller = Depends(get_current_caller),
):
    try:
        return await create_patient_svc(repo, payload, caller)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get("/{patient_id}", response_model=PatientPublic, summary="Get a patient with history")
async def patients_get(
    patient_id: UUID,
    repo: SqlPatientRepository = Depends(get_patient_repository),
    _: Caller = Depends(get_current_caller),
):
    try:
        return await get_patient_svc(repo, patient_id)
    except SchedulingError as e:
        raise to_http_exception(e)
