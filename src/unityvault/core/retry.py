"""
Bounded Retries

Only idempotent reads are retried here: fetching a blockhash, a rent quote,
an account. A submission is never resent from this module; a stale
blockhash means rebuilding and re-signing, which the orchestrator owns.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..errors import RemoteUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff for reads, plus the rebuild budget for submissions."""
    max_attempts: int = 3
    backoff: float = 0.5            # seconds before the first retry
    backoff_multiplier: float = 2.0
    max_rebuilds: int = 2

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff < 0 or self.backoff_multiplier < 1:
            raise ValueError("backoff must be non-negative and multiplier at least 1")
        if self.max_rebuilds < 0:
            raise ValueError("max_rebuilds cannot be negative")

    def delays(self):
        """Sleep before each retry after the first attempt."""
        delay = self.backoff
        for _ in range(self.max_attempts - 1):
            yield delay
            delay *= self.backoff_multiplier


NO_RETRY = RetryPolicy(max_attempts=1, max_rebuilds=0)


async def retry_remote(policy: RetryPolicy, call: Callable[[], Awaitable[T]], what: str) -> T:
    """
    Await call(), retrying on RemoteUnavailable with backoff.

    The last failure propagates unchanged once attempts run out.
    """
    delays = policy.delays()
    while True:
        try:
            return await call()
        except RemoteUnavailable as e:
            delay = next(delays, None)
            if delay is None:
                raise
            logger.warning("%s failed (%s), retrying in %.2fs", what, e, delay)
            await asyncio.sleep(delay)
