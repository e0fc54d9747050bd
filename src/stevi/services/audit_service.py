"""
Audit recorder.

Events are written after the mutation has been committed, in their own
transaction. A failure to record is logged and counted but never undoes the
mutation: audit is an observability side channel.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stevi.metrics import audit_failures_total
from stevi.models.audit_event import AuditEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityRef:
    """Locates an audited row: {namespace, collection, id}. Ids may be int or str."""
    namespace: str
    collection: str
    id: Union[int, str, None]

    @property
    def entity_type(self) -> str:
        return f"{self.namespace}.{self.collection}"

    def to_dict(self) -> Dict[str, Any]:
        return {"schema": self.namespace, "table": self.collection, "id": self.id}


class AuditRecorder:
    """Appends AuditEvent rows."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        actor_profile_id: Optional[str],
        action: str,
        entity_ref: EntityRef,
        meta: Optional[Dict[str, Any]] = None,
        entity_type: Optional[str] = None,
    ) -> Optional[AuditEvent]:
        """
        Insert one audit event and commit it.

        Returns the event, or None when it could not be written.
        """
        event = AuditEvent(
            actor_profile_id=actor_profile_id,
            action=action,
            entity_type=entity_type or entity_ref.entity_type,
            entity_ref=entity_ref.to_dict(),
            entity_id=None if entity_ref.id is None else str(entity_ref.id),
            meta=meta or {},
        )
        try:
            self.db.add(event)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            audit_failures_total.labels(action=action).inc()
            logger.error(f"Failed to record audit event {action} for {entity_ref}: {e}", exc_info=True)
            return None

        logger.debug(f"Recorded audit event {action} for {entity_ref.entity_type}:{entity_ref.id}")
        return event
