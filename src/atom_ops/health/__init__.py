"""Health monitoring: probe registry, aggregation and default probes."""

from atom_ops.health.probes import (
    PlatformClient,
    Store,
    error_rate_probe,
    notification_probe,
    platform_probe,
    register_default_checks,
    store_probe,
)
from atom_ops.health.registry import (
    CheckResult,
    HealthCheck,
    HealthCheckRegistry,
    HealthReport,
    HealthStatus,
    Issue,
)

__all__ = [
    "CheckResult",
    "HealthCheck",
    "HealthCheckRegistry",
    "HealthReport",
    "HealthStatus",
    "Issue",
    "PlatformClient",
    "Store",
    "error_rate_probe",
    "notification_probe",
    "platform_probe",
    "register_default_checks",
    "store_probe",
]
