"""Retry executor for operations that fail transiently.

The delay between attempts is fixed by default. Setting ``backoff`` above
1.0 grows it geometrically, capped by ``max_delay``.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, ParamSpec, TypeVar

import structlog

from atom_ops.metrics import RETRY_ATTEMPTS

log = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")


def _always(error: BaseException) -> bool:
    return True


@dataclass
class RetryPolicy:
    """How often and how patiently to retry an operation."""

    max_retries: int = 3
    delay: float = 1.0  # Seconds
    should_retry: Callable[[BaseException], bool] = field(default=_always)
    backoff: float = 1.0
    max_delay: float | None = None

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given zero-based failed attempt."""
        wait = self.delay * (self.backoff**attempt)
        if self.max_delay is not None:
            wait = min(wait, self.max_delay)
        return wait


async def with_retry(
    operation: Callable[[], Awaitable[T] | T],
    policy: RetryPolicy | None = None,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run an operation, retrying failures according to the policy.

    Makes at most ``max_retries + 1`` attempts. The last error propagates
    unchanged once retries are exhausted or ``should_retry`` rejects it.

    Args:
        operation: Zero-argument callable, sync or async
        policy: Retry policy (default: 3 retries, 1s apart)
        sleep: Awaitable sleep, replaceable for tests

    Returns:
        The operation's result
    """
    policy = policy or RetryPolicy()
    attempt = 0

    while True:
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            if attempt >= policy.max_retries:
                RETRY_ATTEMPTS.labels(outcome="exhausted").inc()
                log.warning("Retries exhausted", attempts=attempt + 1, error=str(e))
                raise
            if not policy.should_retry(e):
                RETRY_ATTEMPTS.labels(outcome="rejected").inc()
                raise

            wait = policy.delay_for(attempt)
            RETRY_ATTEMPTS.labels(outcome="retry").inc()
            log.warning(
                "Operation failed, retrying",
                delay=wait,
                attempt=attempt + 1,
                max_attempts=policy.max_retries + 1,
                error=str(e),
            )
            await sleep(wait)
            attempt += 1
        else:
            if attempt > 0:
                log.info("Operation succeeded after retry", attempts=attempt + 1)
            RETRY_ATTEMPTS.labels(outcome="success").inc()
            return result


def retrying(
    policy: RetryPolicy | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator form of :func:`with_retry` for async functions.

    Example:
        @retrying(RetryPolicy(max_retries=2, should_retry=is_retryable))
        async def fetch_member(guild_id, user_id):
            ...
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await with_retry(lambda: func(*args, **kwargs), policy)

        return wrapper

    return decorator
