"""
Fixed-window rate limiter backed by the rate_limit_events table.

An allowed attempt appends an event and commits it immediately, so the
attempt is counted even if the mutation that follows fails.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import logging
import math

from sqlalchemy import func
from sqlalchemy.orm import Session

from stevi.metrics import rate_limit_denials_total
from stevi.models.rate_limit_event import RateLimitEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_in_ms: int = 0


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RateLimiter:
    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def check(self, actor_key: str, event_type: str, limit: int, window_ms: int) -> RateLimitDecision:
        """
        Count attempts for (event_type, actor_key) inside the window.

        At `limit` the attempt is denied and `retry_in_ms` is the time until the
        oldest counted attempt leaves the window (at least 1ms).
        """
        now = _utc(self.clock())
        window_start = now - timedelta(milliseconds=window_ms)

        count, oldest = (
            self.db.query(func.count(RateLimitEvent.id), func.min(RateLimitEvent.created_at))
            .filter(
                RateLimitEvent.event_type == event_type,
                RateLimitEvent.actor_key == actor_key,
                RateLimitEvent.created_at > window_start,
            )
            .one()
        )

        if count >= limit:
            expires_at = _utc(oldest) + timedelta(milliseconds=window_ms)
            retry_in_ms = max(1, math.ceil((expires_at - now).total_seconds() * 1000))
            rate_limit_denials_total.labels(event_type=event_type).inc()
            logger.warning(
                f"Rate limit hit: event={event_type} actor={actor_key} "
                f"count={count} limit={limit} retry_in_ms={retry_in_ms}"
            )
            return RateLimitDecision(allowed=False, retry_in_ms=retry_in_ms)

        self.db.add(RateLimitEvent(event_type=event_type, actor_key=actor_key, created_at=now))
        self.db.commit()
        return RateLimitDecision(allowed=True)


def format_invite_cooldown(retry_in_ms: int) -> str:
    """'Invite limit reached. Try again in about N minutes.' (N rounded up, min 1)."""
    minutes = max(1, math.ceil(retry_in_ms / 60000))
    unit = "minute" if minutes == 1 else "minutes"
    return f"Invite limit reached. Try again in about {minutes} {unit}."
