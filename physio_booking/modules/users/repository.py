# physio_booking/modules/users/repository.py
from __future__ import annotations

from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from physio_booking.modules.appointments.models import Appointment, ApptStatus
from physio_booking.modules.log import write_audit_log
from physio_booking.modules.users.models import UserProfile


class SqlUserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user(self, user_id: UUID) -> Optional[UserProfile]:
        """
        Returns a profile by primary key or None if not found.
        """
        return await self.session.get(UserProfile, user_id)

    async def get_user_by_email(self, email: str) -> Optional[UserProfile]:
        """
        Returns a profile by email (normalized to lowercase) or None.
        """
        email = email.strip().lower()
        stmt = select(UserProfile).where(UserProfile.email == email)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def list_users_with_stats(self) -> Sequence[tuple[UserProfile, int]]:
        """
        Every profile, newest first, with its count of non-cancelled bookings.
        """
        counts = (
            select(Appointment.therapist_id, func.count().label("appointment_count"))
            .where(Appointment.status != ApptStatus.CANCELLED.value)
            .group_by(Appointment.therapist_id)
            .subquery()
        )
        stmt = (
            select(UserProfile, func.coalesce(counts.c.appointment_count, 0))
            .outerjoin(counts, counts.c.therapist_id == UserProfile.id)
            .order_by(UserProfile.created_at.desc(), UserProfile.id)
        )
        rows = (await self.session.execute(stmt)).all()
        return [(user, int(count)) for user, count in rows]

    async def save_user(self, user: UserProfile) -> UserProfile:
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def record_audit(
        self,
        action: str,
        *,
        performed_by: Optional[UUID],
        target_user_id: Optional[UUID] = None,
        old_value: Optional[dict[str, Any]] = None,
        new_value: Optional[dict[str, Any]] = None,
        details: Optional[str] = None,
    ) -> None:
        await write_audit_log(
            self.session,
            action,
            performed_by=performed_by,
            target_user_id=target_user_id,
            old_value=old_value,
            new_value=new_value,
            details=details,
        )
