"""Exponential-backoff retry for async operations."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to retry and how long to wait in between.

    Delays double from ``base_delay_ms`` and are capped at ``max_delay_ms``;
    the defaults give 1s, 2s, 4s.
    """

    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 10000

    def __post_init__(self):
        if self.max_retries < 0 or self.base_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("RetryPolicy values must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the failed attempt number ``attempt`` (0-based)."""
        return min(self.base_delay_ms * (2 ** attempt), self.max_delay_ms) / 1000


DEFAULT_RETRY_POLICY = RetryPolicy()


class RetryExecutor:
    """Runs an async operation, retrying failures per a RetryPolicy.

    ``sleep`` is awaited between attempts so other tasks keep running while
    one delivery backs off. Tests pass a recording coroutine instead.
    """

    def __init__(
        self,
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.policy = policy
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        give_up_on: tuple[type[BaseException], ...] = (),
        description: str = "operation",
    ) -> T:
        """Await ``operation()`` until it succeeds or retries run out.

        Exceptions not in ``retry_on``, or in ``give_up_on``, propagate on
        the first occurrence. After ``max_retries + 1`` failed attempts the
        last exception is re-raised unchanged.
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except give_up_on:
                raise
            except retry_on as exc:
                if attempt >= self.policy.max_retries:
                    logger.error(
                        "%s failed after %d attempts: %s",
                        description, attempt + 1, exc,
                    )
                    raise
                delay = self.policy.delay_for(attempt)
                logger.warning(
                    "%s attempt %d failed, retrying in %.1fs: %s",
                    description, attempt + 1, delay, exc,
                )
                await self._sleep(delay)
                attempt += 1
