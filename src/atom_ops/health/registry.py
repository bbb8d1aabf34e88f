"""Health check registry.

Runs named probes once per cycle and aggregates them into a single report.
A probe that raises is recorded as ``error``, distinct from a probe that
reports itself unhealthy. The aggregate is recomputed from scratch each
cycle: ``critical`` if any check is critical or errored or any
critical-flagged check is not healthy, else ``warning`` if any check warns,
else ``healthy``.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

import structlog

from atom_ops.alerter.classifier import Severity
from atom_ops.alerter.throttler import AlertThrottler
from atom_ops.metrics import HEALTH_CHECK_STATUS, HEALTH_OVERALL

log = structlog.get_logger()


class HealthStatus(Enum):
    """Status of a single check or of a whole report."""

    UNKNOWN = "unknown"  # Never run
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    ERROR = "error"  # Probe itself raised


_STATUS_GAUGE = {
    HealthStatus.UNKNOWN: -1,
    HealthStatus.HEALTHY: 0,
    HealthStatus.WARNING: 1,
    HealthStatus.CRITICAL: 2,
    HealthStatus.ERROR: 3,
}


@dataclass
class CheckResult:
    """What a probe returns."""

    status: HealthStatus = HealthStatus.HEALTHY
    message: str = "OK"
    details: dict[str, Any] = field(default_factory=dict)
    response_time_ms: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CheckResult:
        return cls(
            status=HealthStatus(data.get("status", "healthy")),
            message=data.get("message", "OK"),
            details=dict(data.get("details", {})),
            response_time_ms=data.get("response_time_ms", 0.0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
            "response_time_ms": self.response_time_ms,
        }


ProbeReturn = Union[CheckResult, Mapping[str, Any]]
Probe = Callable[[], Union[ProbeReturn, Awaitable[ProbeReturn]]]


@dataclass
class HealthCheck:
    """A registered probe and its running state."""

    name: str
    probe: Probe
    critical: bool = False
    interval_seconds: float = 60
    last_run: datetime | None = None
    last_result: CheckResult | None = None
    consecutive_failures: int = 0

    @property
    def status(self) -> HealthStatus:
        return self.last_result.status if self.last_result else HealthStatus.UNKNOWN


@dataclass
class Issue:
    check: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"check": self.check, "message": self.message, "details": self.details}


@dataclass
class HealthReport:
    """Result of one health-check cycle."""

    timestamp: datetime
    overall: HealthStatus
    checks: dict[str, CheckResult]
    critical_issues: list[Issue]
    warnings: list[Issue]

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "overall": self.overall.value,
            "checks": {name: result.to_dict() for name, result in self.checks.items()},
            "critical_issues": [issue.to_dict() for issue in self.critical_issues],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }


class HealthCheckRegistry:
    """Registry of health probes run together on a schedule."""

    def __init__(
        self,
        throttler: AlertThrottler | None = None,
        default_interval_seconds: float = 60,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.throttler = throttler
        self.default_interval_seconds = default_interval_seconds
        self._clock = clock
        self._checks: dict[str, HealthCheck] = {}
        self._last_report: HealthReport | None = None
        self._cycle_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    def register_health_check(
        self,
        name: str,
        probe: Probe,
        *,
        critical: bool = False,
        interval_seconds: float | None = None,
    ) -> HealthCheck:
        """Register a probe. Re-registering a name replaces the old check."""
        check = HealthCheck(
            name=name,
            probe=probe,
            critical=critical,
            interval_seconds=interval_seconds or self.default_interval_seconds,
        )
        self._checks[name] = check
        log.debug("Health check registered", check=name, critical=critical)
        return check

    @property
    def checks(self) -> dict[str, HealthCheck]:
        return dict(self._checks)

    @property
    def last_report(self) -> HealthReport | None:
        return self._last_report

    async def _run_probe(self, check: HealthCheck) -> CheckResult:
        start = time.monotonic()
        try:
            result = check.probe()
            if inspect.isawaitable(result):
                result = await result
            if not isinstance(result, CheckResult):
                result = CheckResult.from_mapping(result)
        except Exception as e:
            log.error("Health check failed", check=check.name, error=str(e))
            check.consecutive_failures += 1
            result = CheckResult(
                status=HealthStatus.ERROR,
                message=f"Health check failed: {e}",
                details={"error": str(e)},
            )
        else:
            if result.status is HealthStatus.HEALTHY:
                check.consecutive_failures = 0
            else:
                check.consecutive_failures += 1

        if not result.response_time_ms:
            result.response_time_ms = round((time.monotonic() - start) * 1000, 2)
        check.last_run = self._clock()
        check.last_result = result
        return result

    async def run_health_checks(self) -> HealthReport:
        """Run every registered probe and publish a fresh report."""
        async with self._cycle_lock:
            checks = list(self._checks.values())
            results = await asyncio.gather(*(self._run_probe(check) for check in checks))

            overall = HealthStatus.HEALTHY
            critical_issues: list[Issue] = []
            warnings: list[Issue] = []

            for check, result in zip(checks, results):
                HEALTH_CHECK_STATUS.labels(check=check.name).set(_STATUS_GAUGE[result.status])
                issue = Issue(check.name, result.message, result.details)

                if result.status in (HealthStatus.CRITICAL, HealthStatus.ERROR) or (
                    check.critical and result.status is not HealthStatus.HEALTHY
                ):
                    critical_issues.append(issue)
                    overall = HealthStatus.CRITICAL
                elif result.status is HealthStatus.WARNING:
                    warnings.append(issue)
                    if overall is HealthStatus.HEALTHY:
                        overall = HealthStatus.WARNING

            report = HealthReport(
                timestamp=self._clock(),
                overall=overall,
                checks={check.name: result for check, result in zip(checks, results)},
                critical_issues=critical_issues,
                warnings=warnings,
            )
            HEALTH_OVERALL.set(_STATUS_GAUGE[overall])
            self._last_report = report
            return report

    async def _handle_report(self, report: HealthReport) -> None:
        if report.overall is HealthStatus.HEALTHY:
            return

        log.warning(
            "Health check completed",
            overall=report.overall.value,
            critical=[issue.check for issue in report.critical_issues],
            warnings=[issue.check for issue in report.warnings],
        )

        if report.overall is HealthStatus.CRITICAL and self.throttler is not None:
            names = ",".join(sorted(issue.check for issue in report.critical_issues))
            summary = "; ".join(f"{i.check}: {i.message}" for i in report.critical_issues)
            await self.throttler.maybe_notify(
                f"health-monitor:critical:{names}",
                f"Health check critical - {summary}",
                Severity.CRITICAL,
                context="health-monitor",
            )

    async def _loop(self, interval_seconds: float) -> None:
        assert self._stop_event is not None
        while not self._stop_event.is_set():
            try:
                report = await self.run_health_checks()
                await self._handle_report(report)
            except Exception:
                log.exception("Health monitoring failed")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass

    def start(self, interval_seconds: float = 300) -> asyncio.Task:
        """Start periodic monitoring: one cycle now, then every interval.

        Must be called from a running event loop.
        """
        if self._task is not None and not self._task.done():
            return self._task

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(interval_seconds))
        log.info("Health monitoring started", interval_seconds=interval_seconds)
        return self._task

    async def stop(self) -> None:
        """Stop scheduling cycles. An in-flight cycle runs to completion."""
        if self._task is None:
            return
        assert self._stop_event is not None
        self._stop_event.set()
        await self._task
        self._task = None
        log.info("Health monitoring stopped")
