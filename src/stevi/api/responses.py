import math

from fastapi.responses import JSONResponse

from stevi.results import ActionResult, FailureKind


def to_response(result: ActionResult, created: bool = False) -> JSONResponse:
    """Render an ActionResult with its HTTP status (and Retry-After when rate limited)."""
    status_code = result.http_status
    if result.ok and created:
        status_code = 201

    headers = {}
    if result.failure == FailureKind.RATE_LIMITED and result.retry_in_ms:
        headers["Retry-After"] = str(math.ceil(result.retry_in_ms / 1000))

    return JSONResponse(
        status_code=status_code,
        content=result.model_dump(mode="json", exclude_none=True),
        headers=headers or None,
    )
