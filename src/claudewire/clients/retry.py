"""Bounded retry with a fixed delay for non-streaming calls.

Streams are never retried here: a dropped stream has to be restarted by
the caller, not resumed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import aiohttp

from claudewire.core.errors import ClassifiedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_ON: tuple[type[BaseException], ...] = (
    ClassifiedError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


@dataclass
class RetryExecutor:
    """Runs a send function up to ``max_retries + 1`` times.

    Any failure listed in ``retry_on`` (a non-success status or a transport
    error) is retried after sleeping ``retry_delay`` seconds. The delay is
    constant: no backoff, no jitter. When attempts run out the last error
    is raised unchanged. Negative settings are treated as zero.

    Attributes:
        max_retries: Extra attempts after the first.
        retry_delay: Seconds to sleep between attempts.
        retry_on: Exception types that count as a retryable failure.
        sleep: Sleep function; replaced in tests.
    """

    max_retries: int = 0
    retry_delay: float = 0.0
    retry_on: tuple[type[BaseException], ...] = DEFAULT_RETRY_ON
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def __post_init__(self) -> None:
        self.max_retries = max(self.max_retries, 0)
        self.retry_delay = max(self.retry_delay, 0.0)

    async def run(self, send: Callable[[], Awaitable[T]], label: str = "request") -> T:
        """Call ``send`` until it succeeds or attempts are exhausted."""
        last_error: BaseException | None = None

        for attempt in range(self.max_retries + 1):
            try:
                return await send()
            except self.retry_on as err:
                last_error = err
                if attempt < self.max_retries:
                    logger.warning(
                        "%s failed with %s, retrying in %.1fs (attempt %d/%d)",
                        label,
                        type(err).__name__,
                        self.retry_delay,
                        attempt + 1,
                        self.max_retries,
                    )
                    await self.sleep(self.retry_delay)

        if last_error is None:
            raise RuntimeError("Retry loop exited without result or error")
        raise last_error
