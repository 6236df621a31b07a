from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from physio_booking.modules.users.models import AuditLog


async def write_audit_log(
    session: AsyncSession,
    action: str,
    *,
    performed_by: Optional[UUID],
    target_user_id: Optional[UUID] = None,
    old_value: Optional[dict[str, Any]] = None,
    new_value: Optional[dict[str, Any]] = None,
    details: Optional[str] = None,
) -> None:
    """
    Write an audit log entry in the caller's transaction.

    action:
        "role_change"
        "user_approval"
        "user_rejection"
        "user_status_change"
        "appointment_created"
        "appointment_cancelled"
        "waiting_list_promoted"
    """
    stmt = insert(AuditLog).values(
        action=action,
        performed_by=performed_by,
        target_user_id=target_user_id,
        old_value=old_value,
        new_value=new_value,
        details=details,
    )
    await session.execute(stmt)
