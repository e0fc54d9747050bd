"""
Mixins for SQLAlchemy models.
Provides reusable column sets for audit trails and timestamps.
"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func


class TimestampMixin:
    """Adds created_at / updated_at columns maintained by the database."""

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="UTC timestamp when record was created"
    )

    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now(),
        comment="UTC timestamp when record was last updated"
    )


class AuditMixin(TimestampMixin):
    """
    Adds actor attribution on top of the timestamps.

    Provides:
    - created_at / updated_at
    - created_by: profile id of the creator
    - updated_by: profile id of the last updater

    Usage:
        class MyModel(Base, AuditMixin):
            __tablename__ = "my_table"
            id = Column(Integer, primary_key=True)
    """

    created_by = Column(
        String(36),
        comment="Profile id of the actor who created this record"
    )

    updated_by = Column(
        String(36),
        comment="Profile id of the actor who last updated this record"
    )
