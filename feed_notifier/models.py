import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from feed_notifier.errors import ConfigError, TransportError

log = logging.getLogger(__name__)


def parse_dt(value: str | None) -> datetime | None:
    """
    Parse an ISO 8601 timestamp string into an aware UTC datetime.

    Feeds publish strings like '2024-11-03T14:32:00Z', '2024-11-03T14:32:00+02:00'
    or just '2024-01-02'. We compare datetimes (not raw strings) so:
      - '2024-01-02' and '2024-01-02T10:00:00Z' order chronologically
      - offsets are honoured instead of being compared character by character
      - naive values are taken as UTC, never as the host's local time
    """
    if not value or not isinstance(value, str):
        return None

    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        log.debug("Could not parse datetime string: %r", value)
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time, millisecond precision, 'Z' suffix: 2026-02-21T12:39:08.123Z"""
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class FeedItem:
    """One published item seen in the feed during this run. Never persisted."""
    identity: str        # canonical URL, the dedup key
    published_at: str    # kept exactly as the feed published it


@dataclass(frozen=True)
class StateRecord:
    """
    "This item has been notified and recorded."

    Created by the dispatcher at notify time, written by the committer,
    looked up by identity on the next run. Never updated or deleted.
    """
    identity: str
    published_at: str
    detected_at: str

    def to_payload(self) -> dict[str, str]:
        """Wire form shared by the notification message and the store row."""
        return {
            "url": self.identity,
            "published": self.published_at,
            "detected": self.detected_at,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, str]) -> "StateRecord":
        return cls(
            identity=payload["url"],
            published_at=payload["published"],
            detected_at=payload["detected"],
        )


@dataclass(frozen=True)
class TimeWindow:
    """Closed interval [start, end]; both bounds are inclusive."""
    start: datetime
    end: datetime

    @classmethod
    def parse(cls, start: str | None, end: str | None) -> "TimeWindow":
        start_dt = parse_dt(start)
        end_dt = parse_dt(end)
        if start_dt is None:
            raise ConfigError(f"Invalid window start: {start!r}")
        if end_dt is None:
            raise ConfigError(f"Invalid window end: {end!r}")
        if start_dt > end_dt:
            raise ConfigError(f"Window start {start!r} is after window end {end!r}")
        return cls(start=start_dt, end=end_dt)

    def contains(self, dt: datetime) -> bool:
        return self.start <= dt <= self.end


# ─── Fetch results ───────────────────────────────────────────────────────────
# A non-200 feed is an expected branch, so it is a value, not an exception.

@dataclass(frozen=True)
class FeedFetched:
    items: list[dict[str, Any]]


@dataclass(frozen=True)
class FeedUnavailable:
    status: int
    reason: str = ""


FetchResult = FeedFetched | FeedUnavailable


class RunState(enum.Enum):
    FETCHED       = "fetched"
    FILTERED      = "filtered"
    LOOKED_UP     = "looked_up"
    DIFFED        = "diffed"
    NOTIFIED      = "notified"
    COMMITTED     = "committed"
    # terminal early exits
    NO_FEED       = "no_feed"
    NO_CANDIDATES = "no_candidates"
    NO_DELTA      = "no_delta"
    FAILED        = "failed"


TERMINAL_STATES = frozenset({
    RunState.NO_FEED,
    RunState.NO_CANDIDATES,
    RunState.NO_DELTA,
    RunState.COMMITTED,
    RunState.FAILED,
})


@dataclass
class RunResult:
    state: RunState
    candidates: list[FeedItem] = field(default_factory=list)
    delta: list[FeedItem] = field(default_factory=list)
    records: list[StateRecord] = field(default_factory=list)
    error: TransportError | None = None

    @property
    def ok(self) -> bool:
        return self.state is not RunState.FAILED
