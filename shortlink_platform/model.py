"""
Entity model for the Short Link Platform.

Responsibilities:
    - Define the `Link` and `Click` records shared by every storage backend
    - Provide the RFC-3339 timestamp codec used by the durable backend

Design notes:
    - `Click` is frozen: once recorded it never changes.
    - `Link.unique_ips` is maintained by storage backends only; callers read it.
    - Backends hand out copies (`Link.snapshot()`), so mutating a returned link
      never changes stored state.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Set

__all__ = [
    "Click",
    "Link",
    "utc_now",
    "format_timestamp",
    "parse_timestamp",
    "UNKNOWN_COUNTRY",
]

UNKNOWN_COUNTRY = "Unknown"

_TIMESTAMP_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d{1,9}))?(Z|[+-]\d{2}:\d{2})$"
)


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """
    Format a datetime as a fixed-width RFC-3339 UTC string (nanosecond field).

    Example:
        2026-01-02T03:04:05.123456000Z

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.%f") + "000Z"


def parse_timestamp(raw: str) -> datetime:
    """
    Parse an RFC-3339 timestamp with second up to nanosecond precision.

    Fractional digits beyond microseconds are truncated. Raises ValueError on
    anything else, including an empty string and instants that fall outside the
    datetime range once shifted to UTC.
    """
    match = _TIMESTAMP_RE.match((raw or "").strip())
    if not match:
        raise ValueError(f"invalid RFC-3339 timestamp: {raw!r}")
    base, fraction, offset = match.groups()
    parsed = datetime.strptime(base, "%Y-%m-%dT%H:%M:%S")
    if fraction:
        parsed = parsed.replace(microsecond=int((fraction + "000000")[:6]))
    if offset == "Z":
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    try:
        return parsed.replace(tzinfo=tz).astimezone(timezone.utc)
    except OverflowError as exc:
        raise ValueError(f"timestamp out of range in UTC: {raw!r}") from exc


@dataclass(frozen=True)
class Click:
    """One recorded redirect against a code."""

    timestamp: datetime
    ip: str = ""
    country: str = ""
    user_agent: str = ""


@dataclass
class Link:
    """
    A short code mapped to a destination URL, plus its click history.

    `expires_at=None` means the link never expires (minimal variant).
    """

    code: str
    original_url: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    clicks: List[Click] = field(default_factory=list)
    unique_ips: Set[str] = field(default_factory=set)

    @property
    def total_clicks(self) -> int:
        return len(self.clicks)

    @property
    def unique_visitors(self) -> int:
        return len(self.unique_ips)

    @property
    def last_accessed(self) -> Optional[datetime]:
        return self.clicks[-1].timestamp if self.clicks else None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once `now` is strictly past `expires_at`."""
        if self.expires_at is None:
            return False
        return (now or utc_now()) > self.expires_at

    def snapshot(self) -> "Link":
        """Copy safe to hand out of a backend (clicks are immutable, containers are not)."""
        return replace(self, clicks=list(self.clicks), unique_ips=set(self.unique_ips))
