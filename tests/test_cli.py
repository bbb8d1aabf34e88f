"""Tests for the CLI."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from atom_ops.cli import main


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    for name in ("DISCORD_WEBHOOK_URL", "EMAIL", "EMAIL_PASSWORD", "EMAIL_RECIPIENT"):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


def invoke(runner: CliRunner, tmp_path: Path, *args: str):
    return runner.invoke(main, ["--config", str(tmp_path / "missing.yaml"), *args])


def test_classify_missing_permissions(runner, tmp_path):
    result = invoke(runner, tmp_path, "classify", "Missing permissions")
    assert result.exit_code == 0
    assert "Severity:  high" in result.output
    assert "Reason:    permission" in result.output


def test_classify_platform_code(runner, tmp_path):
    result = invoke(runner, tmp_path, "classify", "slow down", "--domain", "platform-api", "--code", "429")
    assert result.exit_code == 0
    assert "Severity:  medium" in result.output
    assert "Retryable: yes" in result.output


def test_alert_test_without_channel_fails(runner, tmp_path):
    result = invoke(runner, tmp_path, "alert", "test")
    assert result.exit_code == 1
    assert "no notification channel configured" in result.output


def test_health_reports_unconfigured_alerting_as_warning(runner, tmp_path):
    result = invoke(runner, tmp_path, "health")
    assert result.exit_code == 0
    assert '"overall": "warning"' in result.output
    assert "Notification channel not configured" in result.output
