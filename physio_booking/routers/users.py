# physio_booking/routers/users.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from physio_booking.core.errors import SchedulingError, to_http_exception
from physio_booking.core.permission import Caller
from physio_booking.dependencies import get_current_caller, get_user_repository
from physio_booking.modules.users.repository import SqlUserRepository
from physio_booking.modules.users.schemas import UserProfilePublic
from physio_booking.modules.users.service import get_me_svc

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserProfilePublic, summary="Current user's profile")
async def users_me(
    repo: SqlUserRepository = Depends(get_user_repository),
    caller: Caller = Depends(get_current_caller),
):
    try:
        return await get_me_svc(repo, caller)
    except SchedulingError as e:
        raise to_http_exception(e)
