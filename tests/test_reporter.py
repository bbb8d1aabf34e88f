"""Tests for the error reporter facade."""

import pytest
from conftest import RecordingSink

from atom_ops.alerter.classifier import Domain, Reason, Severity
from atom_ops.alerter.throttler import AlertThrottler
from atom_ops.reporter import ErrorContext, ErrorReporter, describe
from atom_ops.tracker import ErrorTracker


@pytest.fixture
def reporter(sink, clock) -> ErrorReporter:
    tracker = ErrorTracker(clock=clock)
    throttler = AlertThrottler(sink, clock=clock)
    return ErrorReporter(tracker, throttler, clock=clock)


class TestReportError:
    @pytest.mark.asyncio
    async def test_critical_error_tracked_and_alerted(self, reporter, sink):
        ctx = ErrorContext(operation="insert", table="guild_settings")
        result = await reporter.report_error(RuntimeError("disk full"), Domain.DATABASE, ctx)

        assert result.severity == Severity.CRITICAL
        stats = reporter.get_error_stats()
        assert stats.total_tracked == 1
        assert stats.counts_by_context == {"database": 1}
        event = stats.most_recent[0]
        assert event.message == "disk full"
        assert event.metadata == {
            "operation": "insert",
            "table": "guild_settings",
            "location": "Database error during insert on table guild_settings",
        }
        assert len(sink.sent) == 1
        assert "Database error during insert on table guild_settings: disk full" in sink.sent[0][1]

    @pytest.mark.asyncio
    async def test_distinct_errors_at_one_call_site_tracked_separately(self, reporter, sink):
        """A long location summary must not swallow the error text in the key."""
        ctx = ErrorContext(operation="insert", table="guild_settings")
        await reporter.report_error(
            Exception("connect ECONNREFUSED 127.0.0.1:5432"), Domain.DATABASE, ctx
        )
        await reporter.report_error(
            Exception("duplicate key violates unique constraint"), Domain.DATABASE, ctx
        )

        assert reporter.get_error_stats().total_tracked == 2
        assert len(sink.sent) == 2

    @pytest.mark.asyncio
    async def test_empty_error_text_uses_type_name(self, reporter):
        await reporter.report_error(ConnectionRefusedError(), Domain.SERVICE)
        assert reporter.get_error_stats().most_recent[0].message == "ConnectionRefusedError"

    @pytest.mark.asyncio
    async def test_low_severity_tracked_not_alerted(self, reporter, sink):
        ctx = ErrorContext(command_name="ping", user_id="1", guild_id="2")
        result = await reporter.report_error(ValueError("odd"), Domain.COMMAND, ctx)

        assert result.severity == Severity.LOW
        assert reporter.get_error_stats().total_tracked == 1
        assert sink.sent == []

    @pytest.mark.asyncio
    async def test_repeated_error_alerts_once(self, reporter, sink):
        ctx = ErrorContext(command_name="bind")
        for _ in range(3):
            await reporter.report_error(Exception("Missing permissions"), Domain.COMMAND, ctx)

        stats = reporter.get_error_stats()
        assert stats.total_tracked == 1
        assert stats.total_recorded == 3
        assert len(sink.sent) == 1

    @pytest.mark.asyncio
    async def test_classification_drives_user_message(self, reporter):
        result = await reporter.report_error(Exception("Not found"), Domain.COMMAND)
        assert result.reason == Reason.NOT_FOUND

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_raise(self, clock):
        broken = RecordingSink(raises=RuntimeError("smtp down"))
        reporter = ErrorReporter(ErrorTracker(clock=clock), AlertThrottler(broken, clock=clock))

        result = await reporter.report_error(ConnectionRefusedError(), Domain.SERVICE)

        assert result.severity == Severity.CRITICAL
        assert reporter.get_error_stats().total_tracked == 1

    @pytest.mark.asyncio
    async def test_internal_failure_swallowed(self, reporter, monkeypatch):
        def explode(event):
            raise RuntimeError("tracker broken")

        monkeypatch.setattr(reporter.tracker, "record", explode)

        assert await reporter.report_error(Exception("boom"), Domain.SERVICE) is None


class TestWrap:
    @pytest.mark.asyncio
    async def test_reports_and_reraises(self, reporter):
        async def lookup(guild_id):
            raise KeyError(guild_id)

        wrapped = reporter.wrap(lookup, Domain.SERVICE, ErrorContext(service_name="settings"))

        with pytest.raises(KeyError):
            await wrapped("42")

        assert reporter.get_error_stats().counts_by_context == {"service-execution": 1}

    @pytest.mark.asyncio
    async def test_passes_through_result(self, reporter):
        async def ok(x):
            return x + 1

        assert await reporter.wrap(ok, Domain.SERVICE)(1) == 2
        assert reporter.get_error_stats().total_tracked == 0


def test_describe():
    assert describe(Domain.COMMAND, ErrorContext(command_name="bind")) == "Command error in bind"
    assert describe(Domain.PLATFORM_API, ErrorContext(operation="reply")) == (
        "Platform API error during reply"
    )
