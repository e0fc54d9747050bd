"""FastAPI exception handlers for PipelineError raised outside a pipeline run."""

import logging

from fastapi import FastAPI, Request

from stevi.api.responses import to_response
from stevi.errors import PipelineError, RateLimitedFailure, ValidationFailure
from stevi.results import ActionResult

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app."""

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError):
        logger.warning(f"{request.method} {request.url.path} failed outside pipeline: {exc.kind.value}")
        extra = {}
        if isinstance(exc, ValidationFailure) and exc.field_errors:
            extra["field_errors"] = exc.field_errors
        if isinstance(exc, RateLimitedFailure):
            extra["retry_in_ms"] = exc.retry_in_ms
        result = ActionResult.error(request.url.path, exc.kind, exc.message, **extra)
        return to_response(result)
