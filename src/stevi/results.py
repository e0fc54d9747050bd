"""
Result type returned by every pipeline entry point.

A result is either a success (optional message/data) or a failure with one
FailureKind from a closed set. Route handlers only ever see ActionResult.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class FailureKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    VALIDATION = "validation"
    INTEGRITY = "integrity"
    RATE_LIMITED = "rate_limited"
    BACKEND = "backend"


FAILURE_STATUS_CODES = {
    FailureKind.UNAUTHENTICATED: 401,
    FailureKind.UNAUTHORIZED: 403,
    FailureKind.VALIDATION: 400,
    FailureKind.INTEGRITY: 409,
    FailureKind.RATE_LIMITED: 429,
    FailureKind.BACKEND: 500,
}


class ActionResult(BaseModel):
    """Discriminated success/failure outcome of one mutation."""
    status: str
    action: str
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    failure: Optional[FailureKind] = None
    field_errors: Optional[Dict[str, str]] = None
    retry_in_ms: Optional[int] = None
    redirect_to: Optional[str] = None
    revalidated_paths: List[str] = []

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def http_status(self) -> int:
        if self.failure is None:
            return 200
        return FAILURE_STATUS_CODES[self.failure]

    @classmethod
    def success(
        cls,
        action: str,
        message: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        revalidated_paths: Optional[List[str]] = None,
    ) -> "ActionResult":
        return cls(
            status="success",
            action=action,
            message=message,
            data=data,
            revalidated_paths=revalidated_paths or [],
        )

    @classmethod
    def error(cls, action: str, failure: FailureKind, message: str, **extra: Any) -> "ActionResult":
        return cls(status="error", action=action, failure=failure, message=message, **extra)
