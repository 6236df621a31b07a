# physio_booking/modules/users/service.py
from __future__ import annotations

import logging
from typing import List

from physio_booking.core.errors import NotFoundError, ValidationError
from physio_booking.core.permission import ADMIN, Caller, require_capability
from physio_booking.modules.users.models import AuditAction, UserProfile, UserRole, UserStatus
from physio_booking.modules.users.repository import SqlUserRepository
from physio_booking.modules.users.schemas import (
    AdminAction,
    AdminUserUpdateRequest,
    UserProfilePublic,
    UserWithStats,
)

logger = logging.getLogger(__name__)

_AUDIT_ACTIONS = {
    AdminAction.approve: AuditAction.USER_APPROVAL,
    AdminAction.reject: AuditAction.USER_REJECTION,
    AdminAction.promote: AuditAction.ROLE_CHANGE,
    AdminAction.demote: AuditAction.ROLE_CHANGE,
    AdminAction.activate: AuditAction.USER_STATUS_CHANGE,
    AdminAction.deactivate: AuditAction.USER_STATUS_CHANGE,
}

# Actions an admin may not apply to their own account
_SELF_FORBIDDEN = {AdminAction.demote, AdminAction.deactivate}


def _to_public(user: UserProfile) -> UserProfilePublic:
    return UserProfilePublic.model_validate(user)


async def get_me_svc(repo: SqlUserRepository, caller: Caller) -> UserProfilePublic:
    user = await repo.get_user(caller.user_id)
    if user is None:
        raise NotFoundError("user_not_found")
    return _to_public(user)


async def list_users_svc(repo: SqlUserRepository, caller: Caller) -> List[UserWithStats]:
    """
    Admin only. Every profile with its non-cancelled booking count.
    """
    require_capability(caller, ADMIN)
    rows = await repo.list_users_with_stats()
    return [
        UserWithStats.model_validate(
            {**_to_public(user).model_dump(), "appointment_count": count}
        )
        for user, count in rows
    ]


def _apply_action(user: UserProfile, action: AdminAction) -> None:
    """
    Mutate role/status in place. Raises ValidationError when the action
    does not apply to the target's current role.
    """
    is_therapist = user.role == UserRole.THERAPIST.value

    if action is AdminAction.approve:
        if not is_therapist:
            raise ValidationError("can_only_approve_therapists")
        user.status = UserStatus.APPROVED.value
    elif action is AdminAction.reject:
        if not is_therapist:
            raise ValidationError("can_only_reject_therapists")
        user.status = UserStatus.REJECTED.value
    elif action is AdminAction.promote:
        if not is_therapist:
            raise ValidationError("can_only_promote_therapists", "Can only promote therapists to admin")
        user.role = UserRole.ADMIN.value
        user.status = UserStatus.ACTIVE.value
    elif action is AdminAction.demote:
        if user.role != UserRole.ADMIN.value:
            raise ValidationError("can_only_demote_admins", "Can only demote other admins")
        user.role = UserRole.THERAPIST.value
    elif action is AdminAction.activate:
        user.status = UserStatus.ACTIVE.value
    elif action is AdminAction.deactivate:
        user.status = UserStatus.INACTIVE.value


async def admin_update_user_svc(
    repo: SqlUserRepository,
    payload: AdminUserUpdateRequest,
    caller: Caller,
) -> UserProfilePublic:
    """
    Approval workflow: approve / reject / promote / demote / activate /
    deactivate. Every change is written to the audit log with the old and new
    role/status.
    """
    require_capability(caller, ADMIN)

    user = await repo.get_user(payload.user_id)
    if user is None:
        raise NotFoundError("user_not_found")

    if user.id == caller.user_id and payload.action in _SELF_FORBIDDEN:
        raise ValidationError("cannot_modify_own_account", "You cannot modify your own account")

    old_value = {"role": user.role, "status": user.status}
    _apply_action(user, payload.action)
    user = await repo.save_user(user)

    await repo.record_audit(
        _AUDIT_ACTIONS[payload.action].value,
        performed_by=caller.user_id,
        target_user_id=user.id,
        old_value=old_value,
        new_value={"role": user.role, "status": user.status},
        details=f"Admin {caller.full_name} {payload.action.value}d user {user.full_name}",
    )
    logger.info("Admin %s applied %s to user %s", caller.user_id, payload.action.value, user.id)
    return _to_public(user)
