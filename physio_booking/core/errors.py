# physio_booking/core/errors.py
from __future__ import annotations

from typing import Any, Optional

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

from physio_booking.modules.scheduling.schemas import ConflictResponse


class SchedulingError(Exception):
    """
    Base for every error the scheduling core raises.

    `code` is a stable machine-readable string (used as HTTP detail);
    `http_status` is what routers answer with.
    """

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(code)
        self.code = code
        self.message = message or code


class ValidationError(SchedulingError):
    """Malformed input (time format, duration, missing fields). Raised before any read."""

    http_status = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(ValidationError):
    """Requested status change is not allowed by the booking state machine."""


class NotFoundError(SchedulingError):
    """Referenced patient / booking / room / waiting entry does not exist."""

    http_status = status.HTTP_404_NOT_FOUND


class ForbiddenError(SchedulingError):
    """Role or ownership mismatch."""

    http_status = status.HTTP_403_FORBIDDEN


class CompletedAppointmentError(ForbiddenError):
    """Any mutation of a completed booking. Answered as 400 like other invalid updates."""

    http_status = status.HTTP_400_BAD_REQUEST


class ConflictError(SchedulingError):
    """
    Availability check failed (or storage rejected an overlapping insert).
    Carries the structured availability result when there is one.
    """

    http_status = status.HTTP_409_CONFLICT

    def __init__(self, code: str, message: Optional[str] = None, *, result: Any = None):
        super().__init__(code, message)
        self.result = result


class InternalError(SchedulingError):
    """Unexpected storage failure."""

    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(exc: SchedulingError) -> HTTPException:
    """
    Map a core error to the HTTPException the routers raise.
    """
    return HTTPException(status_code=exc.http_status, detail=exc.code)


def conflict_response(exc: ConflictError) -> JSONResponse:
    """
    409 with the conflict details at the top level of the body, so clients
    can read alternativeTimes/alternativeRooms without unwrapping `detail`.
    """
    result = exc.result
    body = ConflictResponse(
        error=exc.message,
        reason=getattr(result, "reason", None),
        message=getattr(result, "message", None) or exc.message,
        conflicting_appointment=getattr(result, "conflicting_appointment", None),
        alternative_times=getattr(result, "alternative_times", None) or [],
        alternative_rooms=getattr(result, "alternative_rooms", None) or [],
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=body.model_dump(mode="json", by_alias=True),
    )
