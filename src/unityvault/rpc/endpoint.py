"""
Remote Executor Capabilities

The client never assumes more about the network than this small set of
request/response calls. The HTTP JSON-RPC endpoint and the in-memory
LocalLedger both implement it; any other transport can too.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ..core.accounts import AccountInfo
from ..core.keys import PublicKey


@dataclass(frozen=True)
class FreshnessToken:
    """A recent blockhash and the last block height at which it is accepted."""
    blockhash: str
    last_valid_block_height: int


class ConfirmationStatus(Enum):
    PENDING = "pending"         # not seen, or seen but not yet processed
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def satisfies(self, commitment: str) -> bool:
        """True when this status meets or exceeds the requested commitment level."""
        return self.rank >= _RANKS[ConfirmationStatus(commitment)]


_RANKS = {
    ConfirmationStatus.PENDING: 0,
    ConfirmationStatus.PROCESSED: 1,
    ConfirmationStatus.CONFIRMED: 2,
    ConfirmationStatus.FINALIZED: 3,
}


@dataclass(frozen=True)
class SignatureStatus:
    """What the executor currently knows about one transaction."""
    signature: str
    status: ConfirmationStatus
    slot: Optional[int] = None
    error: Optional[str] = None     # set when the transaction executed and failed

    @property
    def failed(self) -> bool:
        return self.error is not None


class RpcEndpoint(ABC):
    """
    Capability set consumed from the remote executor.

    Implementations must be safe to share across concurrent operations.
    """

    @abstractmethod
    async def get_latest_blockhash(self, commitment: str = "confirmed") -> FreshnessToken:
        """Fetch a fresh blockhash to bound a new transaction's validity."""

    @abstractmethod
    async def get_minimum_balance_for_rent_exemption(self, space: int) -> int:
        """Lamports an account of space bytes needs to be exempt from reclamation."""

    @abstractmethod
    async def get_account_info(self, address: PublicKey,
                               commitment: str = "confirmed") -> Optional[AccountInfo]:
        """Account at address, or None when nothing lives there."""

    @abstractmethod
    async def get_program_accounts(self, program_id: PublicKey,
                                   commitment: str = "confirmed") -> List[Tuple[PublicKey, AccountInfo]]:
        """Every account owned by program_id. No filtering."""

    @abstractmethod
    async def send_transaction(self, raw: bytes) -> str:
        """
        Submit signed wire bytes and return the transaction signature.

        Raises StaleFreshnessToken for an expired blockhash and Rejected
        for any other synchronous refusal.
        """

    @abstractmethod
    async def confirm_transaction(self, signature: str, commitment: str = "confirmed") -> SignatureStatus:
        """One status check for signature. Does not wait."""

    async def aclose(self) -> None:
        """Release transport resources. Nothing to release by default."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
