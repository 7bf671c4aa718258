"""
Error envelope shared by every router.

Every 4xx/5xx body is `{code, message, details}`; 422 bodies carry a list of
`ErrorDetail` under `details.errors`.
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """One request field that failed validation."""
    field: str = Field(description="Dotted location, e.g. `duration_days` or `query.tier`.")
    message: str
    type: str


class ErrorResponse(BaseModel):
    """
    Standard error envelope.

    `code` is stable (USER_NOT_FOUND, ACCESS_DENIED, FEATURE_LOCKED,
    INSUFFICIENT_XP, AI_LIMIT_REACHED, ...); `message` is for people.
    """
    model_config = ConfigDict(from_attributes=True)

    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class ValidationErrorResponse(ErrorResponse):
    code: str = "VALIDATION_ERROR"
    details: Optional[dict[str, list[ErrorDetail]]] = None
