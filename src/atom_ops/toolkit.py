"""Wire the resilience components together from a config.

Components are plain objects; nothing here is a process-wide singleton, so
tests and separate tenants can each build their own toolkit.
"""

from dataclasses import dataclass
from datetime import timedelta

from atom_ops.alerter.sinks import NotificationSink, build_sink
from atom_ops.alerter.throttler import AlertThrottler
from atom_ops.config import Config
from atom_ops.health.probes import PlatformClient, Store, register_default_checks
from atom_ops.health.registry import HealthCheckRegistry
from atom_ops.logging import configure_logging
from atom_ops.reporter import ErrorReporter
from atom_ops.tracker import ErrorTracker


@dataclass
class Toolkit:
    config: Config
    sink: NotificationSink
    tracker: ErrorTracker
    throttler: AlertThrottler
    reporter: ErrorReporter
    registry: HealthCheckRegistry

    @classmethod
    def from_config(
        cls,
        config: Config,
        sink: NotificationSink | None = None,
    ) -> "Toolkit":
        """Build all components. The sink defaults to whatever the config enables."""
        sink = sink or build_sink(config)
        tracker = ErrorTracker(
            capacity=config.tracker.capacity,
            prefix_length=config.alerting.fingerprint_prefix,
            recent_window=timedelta(minutes=config.tracker.recent_window_minutes),
            recent_limit=config.tracker.recent_limit,
        )
        throttler = AlertThrottler(
            sink,
            cooldown=timedelta(minutes=config.alerting.cooldown_minutes),
            max_records=config.alerting.max_throttle_records,
        )
        reporter = ErrorReporter(
            tracker, throttler, prefix_length=config.alerting.fingerprint_prefix
        )
        registry = HealthCheckRegistry(
            throttler=throttler if config.alerting.notify_on_health_critical else None,
            default_interval_seconds=config.health.default_check_interval_seconds,
        )
        return cls(
            config=config,
            sink=sink,
            tracker=tracker,
            throttler=throttler,
            reporter=reporter,
            registry=registry,
        )

    def register_default_checks(
        self,
        store: Store | None = None,
        client: PlatformClient | None = None,
        include_platform: bool = True,
    ) -> None:
        register_default_checks(
            self.registry,
            tracker=self.tracker,
            sink=self.sink,
            store=store,
            client=client,
            config=self.config.health,
            include_platform=include_platform,
        )

    def start_monitoring(self) -> None:
        """Start the health-check loop on the running event loop."""
        self.registry.start(self.config.health.interval_seconds)

    def configure_logging(self, service_name: str = "atom-bot") -> None:
        """Apply the configured log level and environment to process logging."""
        configure_logging(service_name, self.config.log_level, self.config.environment)
