"""Configuration loading for atom-ops."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class AlertingConfig:
    """Alert throttling configuration."""

    cooldown_minutes: float = 5
    fingerprint_prefix: int = 50
    max_throttle_records: int = 1000
    notify_on_health_critical: bool = True


@dataclass
class TrackerConfig:
    """Error tracker configuration."""

    capacity: int = 100
    recent_window_minutes: float = 60
    recent_limit: int = 10


@dataclass
class HealthConfig:
    """Health monitoring configuration."""

    interval_seconds: float = 300
    error_rate_threshold: int = 10
    store_latency_threshold_ms: float = 1000
    default_check_interval_seconds: float = 60


@dataclass
class SmtpConfig:
    """SMTP connection configuration for email alerts."""

    host: str = "smtp.hostinger.com"
    port: int = 465
    username: str | None = None
    password: str | None = None
    recipient: str | None = None
    use_ssl: bool = True

    @property
    def is_configured(self) -> bool:
        """Return True when credentials and a recipient are present."""
        return bool(self.username and self.password and self.recipient)


@dataclass
class Config:
    """Application configuration."""

    alerting: AlertingConfig = field(default_factory=AlertingConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    health: HealthConfig = field(default_factory=HealthConfig)
    smtp: SmtpConfig = field(default_factory=SmtpConfig)
    discord_webhook_url: str | None = None
    log_level: str = "INFO"
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        alerting = AlertingConfig(
            cooldown_minutes=float(os.environ.get("ALERT_COOLDOWN_MINUTES", "5")),
            fingerprint_prefix=int(os.environ.get("ALERT_FINGERPRINT_PREFIX", "50")),
            max_throttle_records=int(os.environ.get("ALERT_MAX_THROTTLE_RECORDS", "1000")),
        )
        tracker = TrackerConfig(
            capacity=int(os.environ.get("ERROR_TRACKER_CAPACITY", "100")),
            recent_window_minutes=float(os.environ.get("ERROR_RATE_WINDOW_MINUTES", "60")),
            recent_limit=int(os.environ.get("ERROR_TRACKER_RECENT_LIMIT", "10")),
        )
        health = HealthConfig(
            interval_seconds=float(os.environ.get("HEALTH_CHECK_INTERVAL_SECONDS", "300")),
            error_rate_threshold=int(os.environ.get("ERROR_RATE_THRESHOLD", "10")),
            store_latency_threshold_ms=float(
                os.environ.get("STORE_LATENCY_THRESHOLD_MS", "1000")
            ),
            default_check_interval_seconds=float(
                os.environ.get("HEALTH_CHECK_DEFAULT_INTERVAL_SECONDS", "60")
            ),
        )
        email = os.environ.get("EMAIL")
        smtp = SmtpConfig(
            host=os.environ.get("SMTP_HOST", "smtp.hostinger.com"),
            port=int(os.environ.get("SMTP_PORT", "465")),
            username=email,
            password=os.environ.get("EMAIL_PASSWORD"),
            recipient=os.environ.get("EMAIL_RECIPIENT", email),
        )

        return cls(
            alerting=alerting,
            tracker=tracker,
            health=health,
            smtp=smtp,
            discord_webhook_url=os.environ.get("DISCORD_WEBHOOK_URL"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            environment=os.environ.get("ENVIRONMENT", "development"),
        )

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from YAML file, with env var overrides.

        Secrets (SMTP password, webhook URL) are only taken from the file
        when the environment does not provide them.
        """
        config = cls.from_env()

        if not path.exists():
            return config

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if "alerting" in data:
            al = data["alerting"]
            config.alerting.cooldown_minutes = al.get(
                "cooldown_minutes", config.alerting.cooldown_minutes
            )
            config.alerting.fingerprint_prefix = al.get(
                "fingerprint_prefix", config.alerting.fingerprint_prefix
            )
            config.alerting.max_throttle_records = al.get(
                "max_throttle_records", config.alerting.max_throttle_records
            )
            config.alerting.notify_on_health_critical = al.get(
                "notify_on_health_critical", config.alerting.notify_on_health_critical
            )

        if "tracker" in data:
            tr = data["tracker"]
            config.tracker.capacity = tr.get("capacity", config.tracker.capacity)
            config.tracker.recent_window_minutes = tr.get(
                "recent_window_minutes", config.tracker.recent_window_minutes
            )
            config.tracker.recent_limit = tr.get("recent_limit", config.tracker.recent_limit)

        if "health" in data:
            hc = data["health"]
            config.health.interval_seconds = hc.get(
                "interval_seconds", config.health.interval_seconds
            )
            config.health.error_rate_threshold = hc.get(
                "error_rate_threshold", config.health.error_rate_threshold
            )
            config.health.store_latency_threshold_ms = hc.get(
                "store_latency_threshold_ms", config.health.store_latency_threshold_ms
            )
            config.health.default_check_interval_seconds = hc.get(
                "default_check_interval_seconds", config.health.default_check_interval_seconds
            )

        if "smtp" in data:
            sm = data["smtp"]
            config.smtp.host = sm.get("host", config.smtp.host)
            config.smtp.port = sm.get("port", config.smtp.port)
            config.smtp.use_ssl = sm.get("use_ssl", config.smtp.use_ssl)
            config.smtp.recipient = config.smtp.recipient or sm.get("recipient")
            if not config.smtp.password:
                config.smtp.username = sm.get("username", config.smtp.username)
                config.smtp.password = sm.get("password")

        if not config.discord_webhook_url:
            config.discord_webhook_url = data.get("discord_webhook_url")

        config.log_level = data.get("log_level", config.log_level)
        config.environment = data.get("environment", config.environment)
        return config
