"""Shared fixtures: a controllable clock and an in-memory sink."""

from datetime import datetime, timedelta

import pytest


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingSink:
    """Sink that remembers what it was asked to send."""

    def __init__(self, result: bool = True, raises: Exception | None = None):
        self.result = result
        self.raises = raises
        self.sent: list[tuple[str, str, bool]] = []

    async def send(self, subject: str, body: str, is_html: bool = False) -> bool:
        self.sent.append((subject, body, is_html))
        if self.raises is not None:
            raise self.raises
        return self.result

    def is_configured(self) -> bool:
        return True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
