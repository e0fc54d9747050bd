"""Exception taxonomy raised inside pipeline stages.

Each class maps onto one FailureKind; MutationPipeline converts them into
ActionResult values so they never reach a route handler.
"""
from typing import Dict, Optional

from stevi.results import FailureKind


class PipelineError(Exception):
    """Base exception for pipeline failures."""

    def __init__(self, kind: FailureKind, message: str, status_code: int = 500):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthenticationFailure(PipelineError):
    """No resolvable principal."""

    def __init__(self, message: str = "Sign in to continue."):
        super().__init__(FailureKind.UNAUTHENTICATED, message, status_code=401)


class AuthorizationFailure(PipelineError):
    """Principal resolved but lacks the capability or tenant match."""

    def __init__(self, message: str = "You do not have access to this organization."):
        super().__init__(FailureKind.UNAUTHORIZED, message, status_code=403)


class ValidationFailure(PipelineError):
    """Missing or malformed input, failed confirmation, empty selection."""

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(FailureKind.VALIDATION, message, status_code=400)
        self.field_errors = field_errors


class IntegrityFailure(PipelineError):
    """Dependent rows block the mutation."""

    def __init__(self, message: str):
        super().__init__(FailureKind.INTEGRITY, message, status_code=409)


class RateLimitedFailure(PipelineError):
    """Too many attempts inside the rate-limit window."""

    def __init__(self, message: str, retry_in_ms: int):
        super().__init__(FailureKind.RATE_LIMITED, message, status_code=429)
        self.retry_in_ms = retry_in_ms


class BackendFailure(PipelineError):
    """Unexpected data store error. The message is always the generic one."""

    def __init__(self, message: str = "Unable to complete action. Try again shortly."):
        super().__init__(FailureKind.BACKEND, message, status_code=500)
