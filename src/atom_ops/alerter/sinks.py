"""Notification sinks that deliver alerts to operators.

Every sink's ``send`` reports transport failures through its boolean
return value and never raises.
"""

import asyncio
import smtplib
import ssl
from collections.abc import Sequence
from email.mime.text import MIMEText
from typing import Protocol, runtime_checkable

import httpx
import structlog

from atom_ops.config import Config, SmtpConfig

log = structlog.get_logger()

# Discord embed colors
COLOR_CRITICAL = 0xFF0000  # Red
COLOR_HIGH = 0xFFA500  # Orange
COLOR_WARNING = 0xFFFF00  # Yellow
COLOR_INFO = 0x00FF00  # Green

EMBED_DESCRIPTION_LIMIT = 4096


@runtime_checkable
class NotificationSink(Protocol):
    """External delivery mechanism for alerts."""

    async def send(self, subject: str, body: str, is_html: bool = False) -> bool: ...

    def is_configured(self) -> bool: ...


class NullSink:
    """Sink used when no delivery channel is configured."""

    async def send(self, subject: str, body: str, is_html: bool = False) -> bool:
        log.warning("No notification channel configured, skipping", subject=subject)
        return False

    def is_configured(self) -> bool:
        return False


class DiscordWebhookSink:
    """Discord webhook sink."""

    def __init__(
        self,
        webhook_url: str,
        username: str = "Atom Alerts",
        ping: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url
        self.username = username
        self.ping = ping
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    @staticmethod
    def _color(subject: str) -> int:
        upper = subject.upper()
        if "CRITICAL" in upper:
            return COLOR_CRITICAL
        if "HIGH" in upper:
            return COLOR_HIGH
        if "WARNING" in upper:
            return COLOR_WARNING
        return COLOR_INFO

    async def send(self, subject: str, body: str, is_html: bool = False) -> bool:
        """Send an alert as a rich embed.

        Discord renders markdown, so HTML bodies are sent as-is inside a
        code block.
        """
        description = f"```html\n{body}\n```" if is_html else body
        if len(description) > EMBED_DESCRIPTION_LIMIT:
            description = description[: EMBED_DESCRIPTION_LIMIT - 3] + "..."

        payload: dict = {
            "username": self.username,
            "embeds": [
                {
                    "title": subject,
                    "description": description,
                    "color": self._color(subject),
                }
            ],
        }
        if self.ping:
            payload["content"] = "@here"

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=10.0) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
            log.debug("Discord embed sent", subject=subject)
            return True
        except httpx.HTTPStatusError as e:
            log.error("Discord API error", status=e.response.status_code)
            return False
        except httpx.RequestError as e:
            log.error("Discord request failed", error=str(e))
            return False


class EmailSink:
    """SMTP email sink. The blocking SMTP exchange runs in the default executor."""

    def __init__(self, config: SmtpConfig):
        self.config = config

    def is_configured(self) -> bool:
        return self.config.is_configured

    def _build_message(self, subject: str, body: str, is_html: bool) -> MIMEText:
        msg = MIMEText(body, "html" if is_html else "plain")
        msg["Subject"] = subject
        msg["From"] = self.config.username or ""
        msg["To"] = self.config.recipient or ""
        return msg

    def _deliver(self, msg: MIMEText) -> None:
        cfg = self.config
        if cfg.use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(cfg.host, cfg.port, context=context, timeout=30) as server:
                server.login(cfg.username or "", cfg.password or "")
                server.send_message(msg)
        else:
            with smtplib.SMTP(cfg.host, cfg.port, timeout=30) as server:
                server.starttls()
                server.login(cfg.username or "", cfg.password or "")
                server.send_message(msg)

    async def send(self, subject: str, body: str, is_html: bool = False) -> bool:
        if not self.is_configured():
            log.warning("Email not configured, skipping notification", subject=subject)
            return False

        msg = self._build_message(subject, body, is_html)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            log.error("Email notification failed", error=str(e))
            return False

        log.info("Email notification sent", subject=subject, recipient=self.config.recipient)
        return True


class MultiSink:
    """Fan out to several sinks; succeeds if any of them delivered."""

    def __init__(self, sinks: Sequence[NotificationSink]):
        self.sinks = list(sinks)

    def is_configured(self) -> bool:
        return any(sink.is_configured() for sink in self.sinks)

    async def send(self, subject: str, body: str, is_html: bool = False) -> bool:
        results = await asyncio.gather(
            *(sink.send(subject, body, is_html) for sink in self.sinks),
            return_exceptions=True,
        )
        delivered = False
        for sink, result in zip(self.sinks, results):
            if isinstance(result, BaseException):
                log.error("Notification sink raised", sink=type(sink).__name__, error=str(result))
            elif result:
                delivered = True
        return delivered


def build_sink(config: Config) -> NotificationSink:
    """Build a sink from whichever channels the config enables."""
    sinks: list[NotificationSink] = []
    if config.discord_webhook_url:
        sinks.append(DiscordWebhookSink(config.discord_webhook_url))
    if config.smtp.is_configured:
        sinks.append(EmailSink(config.smtp))

    if not sinks:
        return NullSink()
    if len(sinks) == 1:
        return sinks[0]
    return MultiSink(sinks)
