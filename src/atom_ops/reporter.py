"""Error reporter: classify, track and maybe alert on application errors."""

from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime
from functools import wraps
from typing import Any, ParamSpec, TypeVar

import structlog

from atom_ops.alerter.classifier import Classification, Domain, categorize
from atom_ops.alerter.throttler import AlertThrottler
from atom_ops.logging import log_at_severity
from atom_ops.metrics import ERRORS_REPORTED
from atom_ops.tracker import DEFAULT_PREFIX_LENGTH, ErrorEvent, ErrorStats, ErrorTracker

log = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")

CONTEXT_TAGS = {
    Domain.COMMAND: "command-execution",
    Domain.SERVICE: "service-execution",
    Domain.DATABASE: "database",
    Domain.PLATFORM_API: "platform-api",
}


@dataclass(frozen=True)
class ErrorContext:
    """Where an error happened. All fields optional."""

    operation: str | None = None
    table: str | None = None
    command_name: str | None = None
    service_name: str | None = None
    user_id: str | None = None
    guild_id: str | None = None
    channel_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def metadata(self) -> dict[str, Any]:
        data = {k: v for k, v in asdict(self).items() if v is not None and k != "extra"}
        data.update(self.extra)
        return data


def describe(domain: Domain, context: ErrorContext) -> str:
    """Short human summary of where an error happened."""
    if domain is Domain.COMMAND:
        return f"Command error in {context.command_name or 'unknown'}"
    if domain is Domain.SERVICE:
        return (
            f"Service error in {context.service_name or 'unknown'}"
            f" during {context.operation or 'unknown'}"
        )
    if domain is Domain.DATABASE:
        table = f" on table {context.table}" if context.table else ""
        return f"Database error during {context.operation or 'unknown'}{table}"
    return f"Platform API error during {context.operation or 'unknown'}"


class ErrorReporter:
    """Entry point for application code reporting errors.

    Reporting never raises: a failure inside classification, tracking or
    alerting is logged and dropped so it cannot mask the original error.
    """

    def __init__(
        self,
        tracker: ErrorTracker,
        throttler: AlertThrottler,
        prefix_length: int = DEFAULT_PREFIX_LENGTH,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.tracker = tracker
        self.throttler = throttler
        self.prefix_length = prefix_length
        self._clock = clock

    async def report_error(
        self,
        error: BaseException,
        domain: Domain,
        context: ErrorContext | None = None,
        *,
        code: int | str | None = None,
    ) -> Classification | None:
        """Classify, log, track and (subject to throttling) alert on an error.

        Returns:
            The classification, or None if the reporting path itself failed
        """
        context = context or ErrorContext()
        try:
            classification = categorize(error, domain, code)
            severity = classification.severity
            tag = CONTEXT_TAGS[domain]
            location = describe(domain, context)
            # The fingerprint is cut from the error text, never the location
            error_text = str(error) or type(error).__name__

            log_at_severity(
                log,
                severity,
                location,
                error=error_text,
                context=tag,
                reason=classification.reason.value,
                error_type=type(error).__name__,
            )
            ERRORS_REPORTED.labels(domain=domain.value, severity=severity.value).inc()

            event = ErrorEvent(
                timestamp=self._clock(),
                severity=severity,
                context=tag,
                message=error_text,
                domain=domain,
                cause=error,
                metadata={**context.metadata(), "location": location},
            )
            key = self.tracker.record(event)
            await self.throttler.maybe_notify(
                key, f"{location}: {error_text}", severity, context=tag, error=error
            )
            return classification
        except Exception:
            log.exception(
                "Failed to handle error - error handling system broken",
                original_error=str(error),
            )
            return None

    def get_error_stats(self) -> ErrorStats:
        return self.tracker.stats()

    def wrap(
        self,
        func: Callable[P, Awaitable[T]],
        domain: Domain,
        context: ErrorContext | None = None,
    ) -> Callable[P, Awaitable[T]]:
        """Wrap an async call site so failures are reported, then re-raised."""

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                await self.report_error(e, domain, context)
                raise

        return wrapper
