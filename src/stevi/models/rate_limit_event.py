"""RateLimitEvent model - one row per allowed attempt of a rate-limited action."""
from sqlalchemy import Column, Integer, String, DateTime, Index

from stevi.db.database import Base


class RateLimitEvent(Base):
    __tablename__ = "rate_limit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(100), nullable=False)
    actor_key = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_rate_limit_events_lookup", "event_type", "actor_key", "created_at"),
    )
