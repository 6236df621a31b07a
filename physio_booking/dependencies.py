# physio_booking/dependencies.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from physio_booking.core.permission import Caller, resolve_capabilities
from physio_booking.core.security import InvalidTokenError, verify_access_token
from physio_booking.db.sql import get_session
from physio_booking.modules.patients.repository import SqlPatientRepository
from physio_booking.modules.rooms.repository import SqlRoomRepository
from physio_booking.modules.scheduling.repository import SqlSchedulingRepository
from physio_booking.modules.users.repository import SqlUserRepository

# Tokens are issued by the identity provider; we only verify the Bearer header
bearer_scheme = HTTPBearer(auto_error=False)


def get_repository(session: AsyncSession = Depends(get_session)) -> SqlSchedulingRepository:
    return SqlSchedulingRepository(session)


def get_patient_repository(session: AsyncSession = Depends(get_session)) -> SqlPatientRepository:
    return SqlPatientRepository(session)


def get_room_repository(session: AsyncSession = Depends(get_session)) -> SqlRoomRepository:
    return SqlRoomRepository(session)


def get_user_repository(session: AsyncSession = Depends(get_session)) -> SqlUserRepository:
    return SqlUserRepository(session)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    users: SqlUserRepository = Depends(get_user_repository),
) -> Caller:
    """
    Resolve the Bearer token to the caller's profile and capability set.
    """
    try:
        claims = verify_access_token(credentials.credentials if credentials else None)
    except InvalidTokenError as exc:
        raise _unauthorized(exc.code) from exc

    user = await users.get_user(claims.user_id)
    if not user:
        raise _unauthorized("user_not_found")

    return Caller(
        user_id=user.id,
        capabilities=resolve_capabilities(user.role),
        status=user.status,
        first_name=user.first_name,
        last_name=user.last_name,
    )
