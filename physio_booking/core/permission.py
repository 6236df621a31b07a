# physio_booking/core/permission.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional
from uuid import UUID

from physio_booking.core.errors import ForbiddenError

THERAPIST = "therapist"
ADMIN = "admin"
KNOWN_CAPABILITIES = frozenset({THERAPIST, ADMIN})

# Account statuses allowed to book / queue patients
BOOKING_STATUSES = frozenset({"approved", "active"})


def resolve_capabilities(role: Optional[str], roles: Optional[Iterable[str]] = None) -> frozenset[str]:
    """
    Collapse the single `role` field and any legacy `roles` list into one
    capability set. Unknown values are dropped.
    """
    found = set(roles or [])
    if role:
        found.add(role)
    return frozenset(found & KNOWN_CAPABILITIES)


@dataclass(frozen=True)
class Caller:
    """
    The authenticated user as the core sees it: resolved once at the HTTP
    boundary and passed explicitly into services.
    """

    user_id: UUID
    capabilities: frozenset[str] = field(default_factory=frozenset)
    status: str = "pending"
    first_name: str = ""
    last_name: str = ""

    @property
    def is_admin(self) -> bool:
        return ADMIN in self.capabilities

    @property
    def is_therapist(self) -> bool:
        return THERAPIST in self.capabilities

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


def require_capability(caller: Caller, *allowed: str) -> None:
    if not caller.capabilities & set(allowed):
        raise ForbiddenError("forbidden_role")


def require_booking_therapist(caller: Caller) -> None:
    """
    Only approved/active therapists may create bookings or waiting entries.
    """
    if not caller.is_therapist:
        raise ForbiddenError("only_therapists_can_book")
    if caller.status not in BOOKING_STATUSES:
        raise ForbiddenError("account_not_approved")


def ensure_owner_or_admin(caller: Caller, owner_id: UUID) -> None:
    # admin -> let it pass
    if caller.is_admin:
        return
    if str(owner_id) != str(caller.user_id):
        raise ForbiddenError("not_owner")
