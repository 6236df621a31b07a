# physio_booking/routers/admin.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from physio_booking.core.errors import SchedulingError, to_http_exception
from physio_booking.core.permission import Caller
from physio_booking.dependencies import get_current_caller, get_user_repository
from physio_booking.modules.users.repository import SqlUserRepository
from physio_booking.modules.users.schemas import (
    AdminUserUpdateRequest,
    UserProfilePublic,
    UserWithStats,
)
from physio_booking.modules.users.service import admin_update_user_svc, list_users_svc

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=List[UserWithStats], summary="All users with booking counts")
async def admin_list_users(
    repo: SqlUserRepository = Depends(get_user_repository),
    caller: Caller = Depends(get_current_caller),
):
    try:
        return await list_users_svc(repo, caller)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.put(
    "/users",
    response_model=UserProfilePublic,
    summary="Approve / reject / promote / demote / activate / deactivate a user",
)
async def admin_update_user(
    payload: AdminUserUpdateRequest,
    repo: SqlUserRepository = Depends(get_user_repository),
    caller: Caller = Depends(get_current_caller),
):
    try:
        return await admin_update_user_svc(repo, payload, caller)
    except SchedulingError as e:
        raise to_http_exception(e)
