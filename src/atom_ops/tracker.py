"""Bounded in-memory ledger of recent errors.

Entries are keyed by fingerprint (context tag + severity + message prefix).
Recording an error that shares a fingerprint with a tracked one replaces the
stored event and bumps its occurrence count but keeps its original position;
when the ledger is over capacity the first-inserted fingerprint is evicted.
"""

import threading
from collections import Counter, OrderedDict
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import structlog

from atom_ops.alerter.classifier import Domain, Severity

log = structlog.get_logger()

DEFAULT_CAPACITY = 100
DEFAULT_PREFIX_LENGTH = 50


def fingerprint(
    context: str,
    severity: Severity,
    message: str,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> str:
    """Build the deduplication key for an error.

    Different errors sharing a message prefix collide; that is accepted.
    """
    return f"{context}:{severity.value}:{message[:prefix_length]}"


@dataclass(frozen=True)
class ErrorEvent:
    """A single reported error. Immutable once created."""

    timestamp: datetime
    severity: Severity
    context: str  # Free-form tag, e.g. "command-execution"
    message: str
    domain: Domain | None = None
    cause: BaseException | None = field(default=None, compare=False)
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def fingerprint(self, prefix_length: int = DEFAULT_PREFIX_LENGTH) -> str:
        return fingerprint(self.context, self.severity, self.message, prefix_length)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "severity": self.severity.value,
            "context": self.context,
            "message": self.message,
            "domain": self.domain.value if self.domain else None,
            "cause": repr(self.cause) if self.cause is not None else None,
            "metadata": dict(self.metadata),
        }


@dataclass
class TrackedError:
    """Latest event for a fingerprint plus how often it was seen."""

    event: ErrorEvent
    first_seen: datetime
    occurrences: int = 1


@dataclass
class ErrorStats:
    """Snapshot of tracker contents."""

    total_tracked: int  # Distinct fingerprints
    total_recorded: int  # Raw record() calls since start/clear
    counts_by_context: dict[str, int]
    counts_by_severity: dict[str, int]
    most_recent: list[ErrorEvent]  # Newest first
    recent_count: int  # Distinct fingerprints seen inside the recent window

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_tracked": self.total_tracked,
            "total_recorded": self.total_recorded,
            "counts_by_context": self.counts_by_context,
            "counts_by_severity": self.counts_by_severity,
            "most_recent": [event.to_dict() for event in self.most_recent],
            "recent_count": self.recent_count,
        }


class ErrorTracker:
    """Bounded map of fingerprint -> latest error event."""

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        prefix_length: int = DEFAULT_PREFIX_LENGTH,
        recent_window: timedelta = timedelta(hours=1),
        recent_limit: int = 10,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.prefix_length = prefix_length
        self.recent_window = recent_window
        self.recent_limit = recent_limit
        self._clock = clock
        self._entries: OrderedDict[str, TrackedError] = OrderedDict()
        self._total_recorded = 0
        self._lock = threading.Lock()

    def record(self, event: ErrorEvent) -> str:
        """Store an event, returning its fingerprint."""
        key = event.fingerprint(self.prefix_length)

        with self._lock:
            self._total_recorded += 1
            tracked = self._entries.get(key)
            if tracked is None:
                self._entries[key] = TrackedError(event=event, first_seen=event.timestamp)
            else:
                tracked.event = event
                tracked.occurrences += 1

            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                log.debug("Evicted tracked error", fingerprint=evicted)

        return key

    def get(self, key: str) -> TrackedError | None:
        with self._lock:
            return self._entries.get(key)

    def stats(self) -> ErrorStats:
        """Aggregate statistics. Does not mutate tracker state."""
        with self._lock:
            entries = list(self._entries.values())
            total_recorded = self._total_recorded

        cutoff = self._clock() - self.recent_window
        by_context = Counter(t.event.context for t in entries)
        by_severity = Counter(t.event.severity.value for t in entries)
        newest = sorted(entries, key=lambda t: t.event.timestamp, reverse=True)

        return ErrorStats(
            total_tracked=len(entries),
            total_recorded=total_recorded,
            counts_by_context=dict(by_context),
            counts_by_severity=dict(by_severity),
            most_recent=[t.event for t in newest[: self.recent_limit]],
            recent_count=sum(1 for t in entries if t.event.timestamp >= cutoff),
        )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._total_recorded = 0

    def __len__(self) -> int:
        return len(self._entries)
