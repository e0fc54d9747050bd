"""
AuditEvent model - append-only record of every successful mutation.

Rows are inserted by AuditRecorder and never updated or deleted.
"""
from sqlalchemy import Column, Integer, String, JSON, Index

from stevi.db.database import Base
from stevi.models.base_model import timestamp_created


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)

    actor_profile_id = Column(String(36), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)
    entity_type = Column(String(100), nullable=False)

    # {"schema": ..., "table": ..., "id": ...}
    entity_ref = Column(JSON, nullable=False)
    # Stringified id for lookups across int/uuid keyed tables
    entity_id = Column(String(255), nullable=True)

    meta = Column(JSON, nullable=True)
    created_at = timestamp_created()

    __table_args__ = (
        Index("ix_audit_events_entity", "entity_type", "entity_id"),
    )

    def __repr__(self):
        return f"<AuditEvent(action={self.action}, entity={self.entity_type}:{self.entity_id})>"
