"""CLI for atom-ops.

Usage:
    atom-ops classify "Missing permissions" --domain command
    atom-ops alert test
    atom-ops alert send "Subject" "Body"
    atom-ops health
"""

import asyncio
import json
from datetime import datetime
from pathlib import Path

import click
import structlog

from atom_ops.alerter.classifier import Domain, categorize, user_message
from atom_ops.alerter.sinks import build_sink
from atom_ops.config import Config
from atom_ops.health.registry import HealthStatus
from atom_ops.toolkit import Toolkit

# Configure structlog for CLI output
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
)

log = structlog.get_logger()


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=Path.home() / ".atom" / "ops.yaml",
    help="Config file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: Path, verbose: bool) -> None:
    """Atom bot operational utilities."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = Config.from_file(config_path)
    ctx.obj["verbose"] = verbose


# --- Classification ---


def _parse_code(value: str | None) -> int | str | None:
    if value is None:
        return None
    return int(value) if value.lstrip("-").isdigit() else value


@main.command("classify")
@click.argument("message")
@click.option(
    "--domain",
    type=click.Choice([d.value for d in Domain]),
    default=Domain.COMMAND.value,
    help="Where the error surfaced",
)
@click.option("--code", default=None, help="Platform or socket error code")
def classify_cmd(message: str, domain: str, code: str | None) -> None:
    """Show how an error message would be classified."""
    result = categorize(Exception(message), Domain(domain), _parse_code(code))
    click.echo(f"Severity:  {result.severity.value}")
    click.echo(f"Category:  {result.category.value}")
    click.echo(f"Reason:    {result.reason.value}")
    click.echo(f"Retryable: {'yes' if result.retryable else 'no'}")
    click.echo(f"User sees: {user_message(result)}")


# --- Alerts ---


@main.group()
def alert() -> None:
    """Alert delivery."""
    pass


@alert.command("test")
@click.pass_context
def alert_test(ctx: click.Context) -> None:
    """Send a test alert through the configured channels."""
    config: Config = ctx.obj["config"]
    sink = build_sink(config)
    if not sink.is_configured():
        click.echo("Error: no notification channel configured")
        click.echo("  Set DISCORD_WEBHOOK_URL, or EMAIL and EMAIL_PASSWORD")
        raise SystemExit(1)

    time_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    body = f"Alerting is configured correctly.\n\nTime: {time_str}"
    if asyncio.run(sink.send("Atom Bot - Test Alert", body)):
        click.echo("Test alert sent successfully!")
    else:
        click.echo("Failed to send test alert")
        raise SystemExit(1)


@alert.command("send")
@click.argument("subject")
@click.argument("body")
@click.option("--html", "is_html", is_flag=True, help="Body is HTML")
@click.pass_context
def alert_send(ctx: click.Context, subject: str, body: str, is_html: bool) -> None:
    """Send a custom notification."""
    sink = build_sink(ctx.obj["config"])
    if asyncio.run(sink.send(subject, body, is_html)):
        click.echo("Message sent!")
    else:
        click.echo("Failed to send message")
        raise SystemExit(1)


# --- Health ---


@main.command("health")
@click.pass_context
def health(ctx: click.Context) -> None:
    """Run the notification and error-rate probes once and print the report.

    Exits 1 when the aggregate status is critical.
    """
    toolkit = Toolkit.from_config(ctx.obj["config"])
    toolkit.register_default_checks(include_platform=False)
    report = asyncio.run(toolkit.registry.run_health_checks())

    click.echo(json.dumps(report.to_dict(), indent=2, default=str))
    if report.overall is HealthStatus.CRITICAL:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
