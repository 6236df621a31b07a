# physio_booking/core/security.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from physio_booking.core.config import settings

# Staff sessions are issued by the clinic identity provider. This service
# verifies the Bearer token and maps `sub` to a users row; minting is only
# used by init_db.py and the test suite.

ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"


class InvalidTokenError(Exception):
    """
    Token rejected. `code` is the 401 detail sent back to the client:
    missing_token, invalid_token, invalid_token_type or invalid_claims.
    """

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    role: Optional[str] = None
    email: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    *,
    subject: str,                # users.id as str
    email: Optional[str] = None,
    role: Optional[str] = None,  # "therapist" | "admin"
    expires_minutes: Optional[int] = None,
) -> str:
    now = _utcnow()
    claims: Dict[str, Any] = {
        "sub": subject,
        "type": ACCESS_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_minutes or settings.ACCESS_EXPIRES_MIN)).timestamp()),
        "jti": str(uuid.uuid4()),
    }
    if email:
        claims["email"] = email
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=ALGORITHM)


def verify_access_token(token: Optional[str]) -> TokenClaims:
    """
    Check signature, expiry and token type, and parse the subject as a
    profile id. The role claim is informational only: capabilities are
    always resolved from the stored profile.
    """
    if not token:
        raise InvalidTokenError("missing_token")
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError as exc:
        # expired, bad signature, garbled
        raise InvalidTokenError("invalid_token") from exc

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise InvalidTokenError("invalid_token_type")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise InvalidTokenError("invalid_claims") from exc

    return TokenClaims(user_id=user_id, role=payload.get("role"), email=payload.get("email"))
