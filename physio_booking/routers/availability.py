# physio_booking/routers/availability.py
from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from physio_booking.core.errors import SchedulingError, to_http_exception
from physio_booking.core.permission import ADMIN, THERAPIST, Caller, require_capability
from physio_booking.dependencies import get_current_caller, get_repository
from physio_booking.modules.scheduling.availability import check_availability
from physio_booking.modules.scheduling.repository import SchedulingRepository
from physio_booking.modules.scheduling.schemas import AvailabilityResult

router = APIRouter(tags=["availability"])


@router.get(
    "/availability",
    response_model=AvailabilityResult,
    response_model_exclude_none=True,
    summary="Check whether a slot can be booked",
)
async def availability_check(
    day: date = Query(..., alias="date"),
    time: str = Query(..., description="HH:MM, 24h"),
    duration: int = Query(...),
    room: str = Query(...),
    therapist_id: Optional[UUID] = Query(None, alias="therapistId"),
    exclude_appointment_id: Optional[UUID] = Query(None, alias="excludeAppointmentId"),
    repo: SchedulingRepository = Depends(get_repository),
    caller: Caller = Depends(get_current_caller),
):
    try:
        require_capability(caller, THERAPIST, ADMIN)
        # Only admins may check on behalf of another therapist
        target = therapist_id if (caller.is_admin and therapist_id) else caller.user_id
        return await check_availability(
            repo,
            therapist_id=target,
            day=day,
            time=time,
            duration=duration,
            room=room,
            exclude_booking_id=exclude_appointment_id,
        )
    except SchedulingError as e:
        raise to_http_exception(e)
