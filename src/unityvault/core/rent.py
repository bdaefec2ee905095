"""
Rent-Exempt Reserves

An account must hold a minimum balance proportional to its size or the
network reclaims it. The amount is a network parameter that can change, so
it is asked for every time an account is about to be created.
"""

import logging
from dataclasses import dataclass

from .retry import RetryPolicy, retry_remote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReserveQuote:
    """Minimum lamports for an account of space bytes."""
    space: int
    lamports: int


class ReserveCalculator:
    """Fetches rent-exemption quotes. Holds no cache."""

    def __init__(self, endpoint, retry: RetryPolicy = RetryPolicy()):
        self.endpoint = endpoint
        self.retry = retry

    async def minimum_balance(self, space: int) -> ReserveQuote:
        if space < 0:
            raise ValueError(f"Account size cannot be negative: {space}")

        lamports = await retry_remote(
            self.retry,
            lambda: self.endpoint.get_minimum_balance_for_rent_exemption(space),
            "getMinimumBalanceForRentExemption",
        )
        logger.debug("Reserve for %d bytes: %d lamports", space, lamports)
        return ReserveQuote(space=space, lamports=lamports)
