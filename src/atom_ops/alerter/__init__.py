"""Error classification, alert throttling and notification delivery."""

from .classifier import (
    Classification,
    Domain,
    ErrorCategory,
    Reason,
    Severity,
    categorize,
    classify,
    is_retryable,
    user_message,
)
from .sinks import (
    DiscordWebhookSink,
    EmailSink,
    MultiSink,
    NotificationSink,
    NullSink,
    build_sink,
)
from .throttler import AlertThrottler, ThrottleRecord, format_alert

__all__ = [
    # Classifier
    "classify",
    "categorize",
    "is_retryable",
    "user_message",
    "Classification",
    "Domain",
    "ErrorCategory",
    "Reason",
    "Severity",
    # Sinks
    "NotificationSink",
    "DiscordWebhookSink",
    "EmailSink",
    "MultiSink",
    "NullSink",
    "build_sink",
    # Throttler
    "AlertThrottler",
    "ThrottleRecord",
    "format_alert",
]
