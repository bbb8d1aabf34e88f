"""Prometheus metrics for atom-ops.

All metrics are registered on the default registry and served by the
``/metrics`` route of :func:`atom_ops.api.create_app`.

Usage:
    from atom_ops.metrics import ERRORS_REPORTED

    ERRORS_REPORTED.labels(domain="command", severity="high").inc()
"""

from atom_ops.metrics.ops import (
    ALERTS,
    ERRORS_REPORTED,
    HEALTH_CHECK_STATUS,
    HEALTH_OVERALL,
    RETRY_ATTEMPTS,
)

__all__ = [
    "ALERTS",
    "ERRORS_REPORTED",
    "HEALTH_CHECK_STATUS",
    "HEALTH_OVERALL",
    "RETRY_ATTEMPTS",
]
