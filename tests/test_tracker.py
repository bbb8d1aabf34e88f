"""Tests for the error tracker."""

from datetime import timedelta

import pytest

from atom_ops.alerter.classifier import Severity
from atom_ops.tracker import ErrorEvent, ErrorTracker, fingerprint


def make_event(clock, message="boom", context="command-execution", severity=Severity.HIGH):
    return ErrorEvent(timestamp=clock(), severity=severity, context=context, message=message)


class TestFingerprint:
    def test_format(self):
        assert fingerprint("database", Severity.CRITICAL, "oops") == "database:critical:oops"

    def test_prefix_truncated(self):
        long_a = "x" * 50 + "first tail"
        long_b = "x" * 50 + "second tail"
        assert fingerprint("ctx", Severity.LOW, long_a) == fingerprint("ctx", Severity.LOW, long_b)

    def test_severity_distinguishes(self):
        assert fingerprint("ctx", Severity.LOW, "m") != fingerprint("ctx", Severity.HIGH, "m")


class TestErrorTracker:
    def test_same_fingerprint_single_entry(self, clock):
        """N events with one fingerprint leave one entry; latest wins."""
        tracker = ErrorTracker(clock=clock)
        for i in range(5):
            clock.advance(seconds=1)
            key = tracker.record(make_event(clock))

        stats = tracker.stats()
        assert stats.total_tracked == 1
        assert stats.total_recorded == 5
        tracked = tracker.get(key)
        assert tracked.occurrences == 5
        assert tracked.event.timestamp == clock()
        assert tracked.first_seen == clock() - timedelta(seconds=4)

    def test_capacity_never_exceeded(self, clock):
        tracker = ErrorTracker(capacity=3, clock=clock)
        for i in range(10):
            tracker.record(make_event(clock, message=f"error {i}"))
            assert len(tracker) <= 3

    def test_capacity_plus_one_evicts_oldest(self, clock):
        tracker = ErrorTracker(capacity=3, clock=clock)
        keys = [tracker.record(make_event(clock, message=f"error {i}")) for i in range(4)]

        assert len(tracker) == 3
        assert tracker.get(keys[0]) is None
        for key in keys[1:]:
            assert tracker.get(key) is not None

    def test_rerecord_keeps_insertion_position(self, clock):
        """Eviction follows first insertion, not the latest sighting."""
        tracker = ErrorTracker(capacity=2, clock=clock)
        a = tracker.record(make_event(clock, message="a"))
        b = tracker.record(make_event(clock, message="b"))
        tracker.record(make_event(clock, message="a"))
        tracker.record(make_event(clock, message="c"))

        assert tracker.get(a) is None
        assert tracker.get(b) is not None

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            ErrorTracker(capacity=0)

    def test_stats_counts(self, clock):
        tracker = ErrorTracker(clock=clock)
        tracker.record(make_event(clock, message="a", context="database", severity=Severity.CRITICAL))
        tracker.record(make_event(clock, message="b", context="database", severity=Severity.CRITICAL))
        tracker.record(make_event(clock, message="c", context="command-execution"))

        stats = tracker.stats()
        assert stats.total_tracked == 3
        assert stats.counts_by_context == {"database": 2, "command-execution": 1}
        assert stats.counts_by_severity == {"critical": 2, "high": 1}

    def test_most_recent_newest_first_and_bounded(self, clock):
        tracker = ErrorTracker(recent_limit=3, clock=clock)
        for i in range(5):
            clock.advance(seconds=1)
            tracker.record(make_event(clock, message=f"error {i}"))

        recent = tracker.stats().most_recent
        assert [e.message for e in recent] == ["error 4", "error 3", "error 2"]

    def test_recent_count_uses_window(self, clock):
        tracker = ErrorTracker(recent_window=timedelta(minutes=10), clock=clock)
        tracker.record(make_event(clock, message="old"))
        clock.advance(minutes=20)
        tracker.record(make_event(clock, message="new"))

        stats = tracker.stats()
        assert stats.total_tracked == 2
        assert stats.recent_count == 1

    def test_stats_does_not_mutate(self, clock):
        tracker = ErrorTracker(clock=clock)
        tracker.record(make_event(clock))
        before = tracker.stats()
        after = tracker.stats()
        assert before == after
        assert len(tracker) == 1

    def test_clear(self, clock):
        tracker = ErrorTracker(clock=clock)
        tracker.record(make_event(clock))
        tracker.clear()
        assert tracker.stats().total_recorded == 0
        assert len(tracker) == 0

    def test_event_to_dict(self, clock):
        event = ErrorEvent(
            timestamp=clock(),
            severity=Severity.MEDIUM,
            context="service-execution",
            message="not found",
            cause=KeyError("x"),
            metadata={"guild_id": "42"},
        )
        data = event.to_dict()
        assert data["severity"] == "medium"
        assert data["metadata"] == {"guild_id": "42"}
        assert data["cause"] == "KeyError('x')"
