"""
Policy-gated mutation pipeline.

Every write in the portal goes through MutationPipeline.run:

    decode -> authorize -> pre-checks -> mutate  (inside `mutate`, one transaction)
    commit
    audit   (own transaction, failure logged only)
    invalidate affected views
    -> ActionResult

No exception crosses `run`; each one becomes a failure result with a
FailureKind. Backend errors are logged with full detail and reported with
a generic message.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote
import logging

from opentelemetry import trace
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stevi.auth.access import AccessContext
from stevi.config import LANDING_PATH, LOGIN_PATH
from stevi.errors import (
    AuthenticationFailure,
    BackendFailure,
    IntegrityFailure,
    PipelineError,
    RateLimitedFailure,
    ValidationFailure,
)
from stevi.metrics import mutation_total
from stevi.results import ActionResult, FailureKind
from stevi.services.audit_service import AuditRecorder, EntityRef
from stevi.services.view_invalidation import ViewInvalidator

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CONFLICTING_RECORDS = "This change conflicts with existing records."


@dataclass
class MutationOutcome:
    """What a successful mutation reports back to the pipeline."""
    action: str
    entity_ref: EntityRef
    meta: Dict[str, Any] = field(default_factory=dict)
    paths: List[str] = field(default_factory=list)
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    entity_type: Optional[str] = None


Mutation = Callable[[AccessContext], MutationOutcome]


def login_redirect(return_path: Optional[str]) -> str:
    if not return_path:
        return LOGIN_PATH
    return f"{LOGIN_PATH}?next={quote(return_path, safe='/')}"


class MutationPipeline:
    def __init__(
        self,
        db: Session,
        access: Optional[AccessContext],
        recorder: Optional[AuditRecorder] = None,
        invalidator: Optional[ViewInvalidator] = None,
        return_path: Optional[str] = None,
    ):
        self.db = db
        self.access = access
        self.recorder = recorder or AuditRecorder(db)
        self.invalidator = invalidator or ViewInvalidator()
        self.return_path = return_path

    def run(self, name: str, mutate: Mutation) -> ActionResult:
        with tracer.start_as_current_span(f"pipeline.{name}") as span:
            span.set_attribute("pipeline.action", name)

            if self.access is None:
                result = self._failure(name, AuthenticationFailure())
                span.set_attribute("pipeline.outcome", result.failure.value)
                return result

            span.set_attribute("actor.profile_id", self.access.profile_id)

            try:
                outcome = mutate(self.access)
                self.db.commit()
            except PipelineError as e:
                self.db.rollback()
                result = self._failure(name, e)
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(f"{name} hit an integrity error: {e}")
                result = self._failure(name, IntegrityFailure(CONFLICTING_RECORDS))
            except Exception as e:
                self.db.rollback()
                logger.error(f"{name} failed: {e}", exc_info=True)
                result = self._failure(name, BackendFailure())
            else:
                result = self._success(name, outcome)

            span.set_attribute("pipeline.outcome", result.failure.value if result.failure else "success")
            return result

    def _success(self, name: str, outcome: MutationOutcome) -> ActionResult:
        self.recorder.record(
            actor_profile_id=self.access.profile_id,
            action=outcome.action,
            entity_ref=outcome.entity_ref,
            meta=outcome.meta,
            entity_type=outcome.entity_type,
        )
        paths = self.invalidator.invalidate_all(outcome.paths)

        mutation_total.labels(action=name, outcome="success").inc()
        logger.info(
            f"{name} succeeded: actor={self.access.profile_id} "
            f"entity={outcome.entity_ref.entity_type}:{outcome.entity_ref.id}"
        )
        return ActionResult.success(
            action=name,
            message=outcome.message,
            data=outcome.data,
            revalidated_paths=paths,
        )

    def _failure(self, name: str, error: PipelineError) -> ActionResult:
        mutation_total.labels(action=name, outcome=error.kind.value).inc()
        extra: Dict[str, Any] = {}

        if error.kind == FailureKind.UNAUTHENTICATED:
            extra["redirect_to"] = login_redirect(self.return_path)
        elif error.kind == FailureKind.UNAUTHORIZED:
            extra["redirect_to"] = LANDING_PATH
        elif isinstance(error, ValidationFailure) and error.field_errors:
            extra["field_errors"] = error.field_errors
        elif isinstance(error, RateLimitedFailure):
            extra["retry_in_ms"] = error.retry_in_ms

        if error.kind != FailureKind.BACKEND:
            logger.info(f"{name} rejected ({error.kind.value}): {error.message}")
        return ActionResult.error(name, error.kind, error.message, **extra)
