"""Standard Prometheus metrics for atom-ops.

All metrics use the 'atom_' prefix for consistency.
"""

from prometheus_client import Counter, Gauge

# Error reporting
ERRORS_REPORTED = Counter(
    "atom_errors_reported_total",
    "Total errors reported to the error reporter",
    ["domain", "severity"],
)

ALERTS = Counter(
    "atom_alerts_total",
    "Alert notifications by outcome",
    ["severity", "outcome"],  # outcome: sent, suppressed, failed
)

# Retries
RETRY_ATTEMPTS = Counter(
    "atom_retry_attempts_total",
    "Retry executor attempts by outcome",
    ["outcome"],  # outcome: success, retry, exhausted, rejected
)

# Health
HEALTH_CHECK_STATUS = Gauge(
    "atom_health_check_status",
    "Last status per health check (0 healthy, 1 warning, 2 critical, 3 error)",
    ["check"],
)

HEALTH_OVERALL = Gauge(
    "atom_health_overall",
    "Aggregate health status (0 healthy, 1 warning, 2 critical)",
)
