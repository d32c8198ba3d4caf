"""
Domain records shared by the storage, analytics and manager layers.

Both records are immutable: a Link is never updated after creation and a
Visit is append-only.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time (default clock)."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and normalize aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Link:
    code: str
    original_url: str
    created_at: datetime
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        """Expiry is a read-time predicate; the row itself never changes."""
        if self.expires_at is None:
            return False
        return as_utc(now) >= as_utc(self.expires_at)


@dataclass(frozen=True)
class Visit:
    code: str
    visited_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class LinkStats:
    link: Link
    visit_count: int
    visits: List[Visit] = field(default_factory=list)
