"""Repository metadata, API rate limits and fetcher responses."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

FETCHER_RATE_LIMIT_MIN_REMAINING_ALLOWED = 10

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"([Zz]|[+-]\d{2}:\d{2})$"
)


def _parse_rfc3339(text: str) -> datetime:
    match = _RFC3339.match(text)
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second),
        microsecond, tzinfo=tz,
    )


@dataclass(frozen=True)
class Repository:
    """Metadata of a GitHub repository."""

    repository_name: str
    organization_name: str
    total_stars: int

    def __str__(self) -> str:
        return (
            f"Repository: {self.repository_name}, "
            f"Organization: {self.organization_name}, Stars: {self.total_stars}"
        )


@dataclass(frozen=True)
class FetcherRateLimit:
    """The API rate limit reported alongside a fetch."""

    limit: int = 0
    cost: int = 0
    remaining: int = 0
    reset_at: str = ""

    def is_exceeded(self) -> bool:
        """Whether too few calls remain to keep going before the reset."""
        return self.remaining <= FETCHER_RATE_LIMIT_MIN_REMAINING_ALLOWED

    def duration_until_reset(self, now: datetime) -> timedelta:
        """Time to wait from ``now`` until the limit resets, plus one second.

        Raises ValueError if ``reset_at`` is not an RFC 3339 timestamp.
        """
        reset_at = _parse_rfc3339(self.reset_at)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        micros = (reset_at - now) // timedelta(microseconds=1)
        whole_seconds = abs(micros) // 1_000_000
        if micros < 0:
            whole_seconds = -whole_seconds
        return timedelta(seconds=max(0, 1 + whole_seconds))

    def __str__(self) -> str:
        return (
            f"RateLimit: calls={self.limit - self.remaining}/{self.limit} "
            f"(+{self.cost}), reset={self.reset_at}"
        )


@dataclass
class Response:
    """Repositories returned by one fetch, with the rate limit at that time."""

    repositories: list[Repository] = field(default_factory=list)
    rate_limit: FetcherRateLimit = field(default_factory=FetcherRateLimit)