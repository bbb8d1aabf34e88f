"""Alert throttler for notification deduplication."""

import os
import platform
import threading
import time
import traceback
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from atom_ops.alerter.classifier import Severity
from atom_ops.alerter.sinks import NotificationSink
from atom_ops.metrics import ALERTS

log = structlog.get_logger()

_STARTED = time.monotonic()


@dataclass
class ThrottleRecord:
    """When a fingerprint was last notified, and how often it passed the cooldown."""

    fingerprint: str
    last_notified: datetime
    occurrences: int = 0


def alert_subject(severity: Severity) -> str:
    return f"Atom Bot - {severity.value.upper()} Alert"


def format_alert(
    message: str,
    severity: Severity,
    context: str,
    occurrences: int,
    error: BaseException | None = None,
    timestamp: datetime | None = None,
) -> str:
    """Render the plain-text body of an alert notification."""
    timestamp = timestamp or datetime.now()
    lines = [
        f"{severity.value.upper()} ERROR ALERT - Atom Bot",
        "",
        f"Error Message: {message}",
        f"Severity: {severity.value.upper()}",
        f"Context: {context}",
        f"Timestamp: {timestamp.isoformat()}",
        f"Occurrences: {occurrences}",
        "",
        "Server Details:",
        f"- Host: {os.environ.get('HOSTNAME') or platform.node() or 'Unknown'}",
        f"- Environment: {os.environ.get('ENVIRONMENT', 'development')}",
        f"- Python Version: {platform.python_version()}",
        f"- Uptime: {int(time.monotonic() - _STARTED)} seconds",
    ]
    if error is not None:
        details = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        lines += ["", "Error Details:", details.rstrip()]
    lines += [
        "",
        "This is an automated notification from Atom Bot.",
        "If this error persists, please investigate immediately.",
    ]
    return "\n".join(lines)


class AlertThrottler:
    """Throttler to prevent alert storms.

    Tracks when each fingerprint was last notified and enforces a fixed
    cooldown window before allowing another notification. Only high and
    critical severities are eligible unless forced.
    """

    def __init__(
        self,
        sink: NotificationSink,
        cooldown: timedelta = timedelta(minutes=5),
        max_records: int = 1000,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.sink = sink
        self.cooldown = cooldown
        self.max_records = max_records
        self._clock = clock
        self._records: OrderedDict[str, ThrottleRecord] = OrderedDict()
        self._lock = threading.Lock()

    def should_alert(self, fingerprint: str) -> ThrottleRecord | None:
        """Check the cooldown and claim the slot if it is open.

        Returns:
            The updated record if a notification may go out, None if still in cooldown
        """
        now = self._clock()

        with self._lock:
            record = self._records.get(fingerprint)
            if record is not None and now - record.last_notified < self.cooldown:
                return None

            if record is None:
                record = ThrottleRecord(fingerprint=fingerprint, last_notified=now)
                self._records[fingerprint] = record
            else:
                # Clock may step backwards; last_notified never does
                record.last_notified = max(record.last_notified, now)
                self._records.move_to_end(fingerprint)
            record.occurrences += 1

            while len(self._records) > self.max_records:
                self._records.popitem(last=False)

            return ThrottleRecord(record.fingerprint, record.last_notified, record.occurrences)

    async def maybe_notify(
        self,
        fingerprint: str,
        message: str,
        severity: Severity,
        *,
        context: str = "general",
        error: BaseException | None = None,
        force: bool = False,
    ) -> bool:
        """Send a notification unless it is ineligible or inside the cooldown.

        Delivery failures are logged and treated as a lost notification;
        they never raise.

        Returns:
            True if the sink accepted the notification
        """
        if not (force or severity.alertable):
            return False

        record = self.should_alert(fingerprint)
        if record is None:
            log.debug("Alert suppressed", fingerprint=fingerprint, severity=severity.value)
            ALERTS.labels(severity=severity.value, outcome="suppressed").inc()
            return False

        body = format_alert(
            message,
            severity,
            context,
            occurrences=record.occurrences,
            error=error,
            timestamp=record.last_notified,
        )

        try:
            delivered = await self.sink.send(alert_subject(severity), body)
        except Exception:
            log.exception("Notification sink raised", fingerprint=fingerprint)
            delivered = False

        if delivered:
            log.info("Alert sent", fingerprint=fingerprint, severity=severity.value)
            ALERTS.labels(severity=severity.value, outcome="sent").inc()
        else:
            log.warning("Notification lost", fingerprint=fingerprint, severity=severity.value)
            ALERTS.labels(severity=severity.value, outcome="failed").inc()
        return delivered

    def time_until_alert(self, fingerprint: str) -> timedelta | None:
        """Get time remaining until this fingerprint can alert again.

        Returns:
            Time remaining, or None if can alert now
        """
        with self._lock:
            record = self._records.get(fingerprint)
        if record is None:
            return None

        elapsed = self._clock() - record.last_notified
        if elapsed >= self.cooldown:
            return None

        return self.cooldown - elapsed

    def records(self) -> dict[str, ThrottleRecord]:
        """Snapshot of throttle records, oldest first."""
        with self._lock:
            return {
                key: ThrottleRecord(r.fingerprint, r.last_notified, r.occurrences)
                for key, r in self._records.items()
            }

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
