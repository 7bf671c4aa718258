"""
Custom exception hierarchy for the VOW API.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

The rules engine itself never raises for unexpected account state: it
classifies (and denies). These exceptions belong to the HTTP/persistence
layer around it.
"""
from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from app.core.logging import get_logger
from app.schemas.common import ErrorDetail

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class VowException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class UserNotFoundError(VowException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "USER_NOT_FOUND"

    def __init__(self, user_id: int):
        super().__init__(
            message=f"User {user_id} not found.",
            details={"user_id": user_id},
        )


class UserAlreadyExistsError(VowException):
    http_status = status.HTTP_409_CONFLICT
    code = "USER_EXISTS"

    def __init__(self, email: str):
        super().__init__(
            message="User with this email already exists.",
            details={"email": email},
        )


class VowNotFoundError(VowException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "VOW_NOT_FOUND"

    def __init__(self, vow_id: int):
        super().__init__(
            message=f"Vow {vow_id} not found.",
            details={"vow_id": vow_id},
        )


class DayAlreadyCompletedError(VowException):
    http_status = status.HTTP_409_CONFLICT
    code = "ALREADY_COMPLETED"

    def __init__(self, vow_id: int, day: date):
        super().__init__(
            message=f"Day {day} is already completed for vow {vow_id}.",
            details={"vow_id": vow_id, "day": str(day)},
        )


class VowNotActiveError(VowException):
    http_status = status.HTTP_409_CONFLICT
    code = "VOW_NOT_ACTIVE"

    def __init__(self, vow_id: int, vow_status: str):
        super().__init__(
            message=f"Vow {vow_id} is {vow_status} and cannot be progressed.",
            details={"vow_id": vow_id, "status": vow_status},
        )


class AccessDeniedError(VowException):
    """The account may not use the product at all (trial over, cancelled, ...)."""
    http_status = status.HTTP_403_FORBIDDEN
    code = "ACCESS_DENIED"

    def __init__(self, reason: str, message: str):
        super().__init__(message=message, details={"reason": reason})


class FeatureLockedError(VowException):
    http_status = status.HTTP_403_FORBIDDEN
    code = "FEATURE_LOCKED"

    def __init__(self, feature: str, message: str):
        super().__init__(message=message, details={"feature": feature})


class FeatureLimitReachedError(VowException):
    http_status = status.HTTP_403_FORBIDDEN
    code = "FEATURE_LIMIT_REACHED"

    def __init__(self, feature: str, limit: int):
        super().__init__(
            message=f"Limit of {limit} reached for {feature}. Upgrade to continue.",
            details={"feature": feature, "limit": limit},
        )


class RecoveryNotAllowedError(VowException):
    http_status = status.HTTP_403_FORBIDDEN
    code = "RECOVERY_NOT_ALLOWED"

    def __init__(self, days_missed: int, tokens_remaining: int):
        super().__init__(
            message="Streak recovery is not available for this account.",
            details={"days_missed": days_missed, "tokens_remaining": tokens_remaining},
        )


class InsufficientXPError(VowException):
    http_status = status.HTTP_409_CONFLICT
    code = "INSUFFICIENT_XP"

    def __init__(self, cost: int, current_xp: int):
        super().__init__(
            message="Not enough XP",
            details={"cost": cost, "current_xp": current_xp},
        )


class AIUsageLimitReachedError(VowException):
    http_status = status.HTTP_429_TOO_MANY_REQUESTS
    code = "AI_LIMIT_REACHED"

    def __init__(self, feature: str, message: str):
        super().__init__(message=message, details={"feature": feature})


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def vow_exception_handler(request: Request, exc: VowException) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        code=exc.code,
        status=exc.http_status,
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append(ErrorDetail(
            field=".".join(str(loc) for loc in error["loc"] if loc != "body"),
            message=error["msg"],
            type=error["type"],
        ).model_dump())
    logger.warning("validation_error", path=request.url.path, errors=field_errors)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
