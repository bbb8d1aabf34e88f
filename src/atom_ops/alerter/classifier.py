"""Severity classifier for errors raised by the bot."""

import re
import socket
from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    """Error severity levels."""

    LOW = "low"  # Logged only
    MEDIUM = "medium"  # Logged, not alerted
    HIGH = "high"  # Alert with cooldown
    CRITICAL = "critical"  # Alert with cooldown, service degraded

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @property
    def alertable(self) -> bool:
        """Whether this severity is eligible for an outbound notification."""
        return self.rank >= _SEVERITY_RANK[Severity.HIGH]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class Domain(Enum):
    """Where in the application an error surfaced."""

    COMMAND = "command"
    SERVICE = "service"
    DATABASE = "database"
    PLATFORM_API = "platform-api"


class ErrorCategory(Enum):
    """Coarse error taxonomy used to decide retries."""

    TRANSIENT_INFRA = "transient_infra"
    VALIDATION_OR_PERMISSION = "validation_or_permission"
    NOT_FOUND_OR_CONFLICT = "not_found_or_conflict"
    UNCLASSIFIED = "unclassified"


class Reason(Enum):
    """Precise cause, enough to choose a user-facing message."""

    UNAVAILABLE = "unavailable"
    PERMISSION = "permission"
    INVALID_INPUT = "invalid_input"
    INVALID_PAYLOAD = "invalid_payload"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    UNKNOWN = "unknown"


_REASON_CATEGORY = {
    Reason.UNAVAILABLE: ErrorCategory.TRANSIENT_INFRA,
    Reason.RATE_LIMITED: ErrorCategory.TRANSIENT_INFRA,
    Reason.PERMISSION: ErrorCategory.VALIDATION_OR_PERMISSION,
    Reason.INVALID_INPUT: ErrorCategory.VALIDATION_OR_PERMISSION,
    Reason.INVALID_PAYLOAD: ErrorCategory.VALIDATION_OR_PERMISSION,
    Reason.NOT_FOUND: ErrorCategory.NOT_FOUND_OR_CONFLICT,
    Reason.CONFLICT: ErrorCategory.NOT_FOUND_OR_CONFLICT,
    Reason.UNKNOWN: ErrorCategory.UNCLASSIFIED,
}


@dataclass(frozen=True)
class Classification:
    """Result of classifying an error."""

    severity: Severity
    category: ErrorCategory
    reason: Reason
    domain: Domain
    code: int | str | None = None

    @property
    def retryable(self) -> bool:
        return self.category is ErrorCategory.TRANSIENT_INFRA


# Platform (Discord) API error codes
MISSING_ACCESS = 50001
MISSING_PERMISSIONS = 50013
INVALID_FORM_BODY = 50035
INVALID_FILE_SIZE = 50036
UNKNOWN_MESSAGE = 10008
UNKNOWN_WEBHOOK = 10015
UNKNOWN_INTERACTION = 10062
RATE_LIMITED = 429

# Platform-api domain: codes mapped independently of message text.
PLATFORM_CODES: dict[int, tuple[Severity, Reason]] = {
    INVALID_FORM_BODY: (Severity.CRITICAL, Reason.INVALID_PAYLOAD),
    INVALID_FILE_SIZE: (Severity.CRITICAL, Reason.INVALID_PAYLOAD),
    MISSING_ACCESS: (Severity.HIGH, Reason.PERMISSION),
    MISSING_PERMISSIONS: (Severity.HIGH, Reason.PERMISSION),
    UNKNOWN_MESSAGE: (Severity.HIGH, Reason.NOT_FOUND),
    UNKNOWN_WEBHOOK: (Severity.HIGH, Reason.NOT_FOUND),
    UNKNOWN_INTERACTION: (Severity.HIGH, Reason.NOT_FOUND),
    RATE_LIMITED: (Severity.MEDIUM, Reason.RATE_LIMITED),
}

_UNAVAILABLE_CODES = {"ECONNREFUSED", "ENOTFOUND", "EAI_AGAIN"}
_PERMISSION_CODES = {MISSING_ACCESS, MISSING_PERMISSIONS}
_UNKNOWN_RESOURCE_CODES = {UNKNOWN_MESSAGE, UNKNOWN_WEBHOOK, UNKNOWN_INTERACTION}

# Generic rules: (pattern, codes, severity, reason), first match wins
GENERIC_RULES: list[tuple[re.Pattern, set, Severity, Reason]] = [
    # === CRITICAL (dependency unavailable) ===
    (
        re.compile(
            r"connection refused|ECONNREFUSED|ENOTFOUND|name or service not known"
            r"|getaddrinfo|not initialized|not ready",
            re.IGNORECASE,
        ),
        _UNAVAILABLE_CODES,
        Severity.CRITICAL,
        Reason.UNAVAILABLE,
    ),
    (
        re.compile(r"permission denied", re.IGNORECASE),
        set(),
        Severity.CRITICAL,
        Reason.PERMISSION,
    ),
    # === HIGH (caller input or access problem) ===
    (
        re.compile(r"missing (permission|access)", re.IGNORECASE),
        _PERMISSION_CODES,
        Severity.HIGH,
        Reason.PERMISSION,
    ),
    (
        re.compile(r"invalid|missing|required", re.IGNORECASE),
        set(),
        Severity.HIGH,
        Reason.INVALID_INPUT,
    ),
    # === MEDIUM (lookup misses and conflicts) ===
    (
        re.compile(r"not found", re.IGNORECASE),
        _UNKNOWN_RESOURCE_CODES,
        Severity.MEDIUM,
        Reason.NOT_FOUND,
    ),
    (
        re.compile(r"already exists", re.IGNORECASE),
        set(),
        Severity.MEDIUM,
        Reason.CONFLICT,
    ),
]


def error_code(error: BaseException) -> int | str | None:
    """Extract a platform or socket error code from an exception, if any."""
    code = getattr(error, "code", None)
    if code is not None:
        return code
    if isinstance(error, ConnectionRefusedError):
        return "ECONNREFUSED"
    if isinstance(error, socket.gaierror):
        return "ENOTFOUND"
    return None


def _match_generic(message: str, code: int | str | None) -> tuple[Severity, Reason]:
    for pattern, codes, severity, reason in GENERIC_RULES:
        if (code is not None and code in codes) or pattern.search(message):
            return severity, reason
    return Severity.LOW, Reason.UNKNOWN


def categorize(
    error: BaseException,
    domain: Domain,
    code: int | str | None = None,
) -> Classification:
    """Classify an error raised in the given domain.

    Args:
        error: The exception to classify
        domain: Where the error surfaced
        code: Explicit error code, overrides any code carried by the error

    Returns:
        Classification with severity, category and precise reason
    """
    if code is None:
        code = error_code(error)
    message = str(error)

    if domain is Domain.PLATFORM_API and code in PLATFORM_CODES:
        severity, reason = PLATFORM_CODES[code]
    else:
        severity, reason = _match_generic(message, code)

    # Data-layer failures are always severe; the reason still drives retries
    if domain is Domain.DATABASE:
        severity = Severity.CRITICAL

    return Classification(
        severity=severity,
        category=_REASON_CATEGORY[reason],
        reason=reason,
        domain=domain,
        code=code,
    )


def classify(
    error: BaseException,
    domain: Domain,
    code: int | str | None = None,
) -> Severity:
    """Return just the severity for an error in the given domain."""
    return categorize(error, domain, code).severity


def is_retryable(error: BaseException) -> bool:
    """Retry predicate: transient infrastructure failures and rate limits."""
    return categorize(error, Domain.SERVICE).retryable


GENERIC_USER_MESSAGE = "An error occurred while processing your request."

_USER_MESSAGES = {
    Reason.PERMISSION: "I don't have the required permissions to perform this action.",
    Reason.INVALID_INPUT: "The provided information is invalid. Please check your input.",
    Reason.NOT_FOUND: "The requested resource was not found.",
    Reason.RATE_LIMITED: "I'm being rate limited. Please try again in a moment.",
}


def user_message(classification: Classification) -> str:
    """Pick the message a command handler should show the user."""
    return _USER_MESSAGES.get(classification.reason, GENERIC_USER_MESSAGE)
