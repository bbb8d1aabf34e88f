"""Default health probes for the bot's collaborators.

Each factory returns a zero-argument async probe bound to its target, ready
for :meth:`HealthCheckRegistry.register_health_check`.
"""

import inspect
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

from atom_ops.alerter.sinks import NotificationSink
from atom_ops.config import HealthConfig
from atom_ops.health.registry import CheckResult, HealthCheckRegistry, HealthStatus
from atom_ops.tracker import ErrorTracker


class Store(Protocol):
    """Persistent store. Methods may be sync or async."""

    def ping(self) -> Any: ...

    def row_count(self, table: str) -> Any: ...


class PlatformClient(Protocol):
    """Chat platform client."""

    def is_ready(self) -> bool: ...

    def cache_counts(self) -> Mapping[str, int]: ...


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def store_probe(
    store: Store,
    table: str = "guild_settings",
    latency_threshold_ms: float = 1000,
) -> Callable[[], Awaitable[CheckResult]]:
    """Connectivity plus a lightweight row count.

    Warning when the round trip exceeds the threshold, critical on any failure.
    """

    async def probe() -> CheckResult:
        start = time.monotonic()
        try:
            await _maybe_await(store.ping())
            rows = await _maybe_await(store.row_count(table))
        except Exception as e:
            return CheckResult(
                status=HealthStatus.CRITICAL,
                message=f"Database health check failed: {e}",
                details={"error": str(e)},
            )

        elapsed_ms = round((time.monotonic() - start) * 1000, 2)
        status = HealthStatus.WARNING if elapsed_ms > latency_threshold_ms else HealthStatus.HEALTHY
        return CheckResult(
            status=status,
            message=f"Database responding in {elapsed_ms}ms",
            details={"connected": True, "table": table, "rows": rows},
            response_time_ms=elapsed_ms,
        )

    return probe


def platform_probe(client: PlatformClient | None) -> Callable[[], Awaitable[CheckResult]]:
    """Critical unless the platform client reports ready."""

    async def probe() -> CheckResult:
        try:
            if client is None or not client.is_ready():
                return CheckResult(
                    status=HealthStatus.CRITICAL,
                    message="Platform client not ready",
                    details={"ready": False},
                )
            counts = dict(client.cache_counts())
        except Exception as e:
            return CheckResult(
                status=HealthStatus.CRITICAL,
                message=f"Platform health check failed: {e}",
                details={"error": str(e)},
            )

        guilds = counts.get("guilds", 0)
        users = counts.get("users", 0)
        channels = counts.get("channels", 0)
        return CheckResult(
            message=f"Connected to {guilds} guilds, {users} users, {channels} channels",
            details={"ready": True, **counts},
        )

    return probe


def notification_probe(sink: NotificationSink) -> Callable[[], Awaitable[CheckResult]]:
    """Warning, never critical, when alert delivery is not configured."""

    async def probe() -> CheckResult:
        try:
            configured = sink.is_configured()
        except Exception as e:
            return CheckResult(
                status=HealthStatus.WARNING,
                message=f"Notification health check failed: {e}",
                details={"error": str(e)},
            )

        if not configured:
            return CheckResult(
                status=HealthStatus.WARNING,
                message="Notification channel not configured",
                details={"configured": False},
            )
        return CheckResult(
            message="Notification channel configured and ready",
            details={"configured": True},
        )

    return probe


def error_rate_probe(
    tracker: ErrorTracker,
    threshold: int = 10,
) -> Callable[[], Awaitable[CheckResult]]:
    """Critical above the threshold of recent errors, warning above half of it."""

    async def probe() -> CheckResult:
        stats = tracker.stats()
        rate = stats.recent_count
        details = {
            "error_rate": rate,
            "threshold": threshold,
            "total_tracked": stats.total_tracked,
            "counts_by_context": stats.counts_by_context,
        }

        if rate > threshold:
            return CheckResult(
                status=HealthStatus.CRITICAL,
                message=f"High error rate: {rate} errors detected",
                details=details,
            )
        if rate > threshold / 2:
            return CheckResult(
                status=HealthStatus.WARNING,
                message=f"Elevated error rate: {rate} errors detected",
                details=details,
            )
        return CheckResult(
            message=f"Error rate normal: {rate} errors detected",
            details=details,
        )

    return probe


def register_default_checks(
    registry: HealthCheckRegistry,
    *,
    tracker: ErrorTracker,
    sink: NotificationSink,
    store: Store | None = None,
    client: PlatformClient | None = None,
    config: HealthConfig | None = None,
    include_platform: bool = True,
) -> None:
    """Register the standard probes.

    The store probe is only registered when a store is given; the platform
    probe is registered unless ``include_platform`` is False, and reports
    critical while no client is attached.
    """
    config = config or HealthConfig()
    interval = config.default_check_interval_seconds

    if store is not None:
        registry.register_health_check(
            "database",
            store_probe(store, latency_threshold_ms=config.store_latency_threshold_ms),
            critical=True,
            interval_seconds=interval,
        )
    if include_platform:
        registry.register_health_check(
            "discord", platform_probe(client), critical=True, interval_seconds=interval
        )
    registry.register_health_check(
        "notifications", notification_probe(sink), critical=False, interval_seconds=interval
    )
    registry.register_health_check(
        "error-rates",
        error_rate_probe(tracker, threshold=config.error_rate_threshold),
        critical=True,
        interval_seconds=interval,
    )
