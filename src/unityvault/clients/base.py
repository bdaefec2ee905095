"""
Shared plumbing for the domain clients.

A domain client knows its seeds, sizes and instruction kinds; everything
else (deriving, funding, signing, confirming, reading back) goes through
the Orchestrator it wraps.
"""

from typing import List, Optional, Tuple

from ..config import ClientConfig
from ..core.accounts import AccountKind
from ..core.keys import PublicKey
from ..orchestrator import Orchestrator
from ..rpc.endpoint import RpcEndpoint

DEFAULT_ACCOUNT_SPACE = 1024


class DomainClient:
    """Base for the community, governance, lending, tokenization and user clients."""

    def __init__(self, orchestrator: Orchestrator):
        self.orchestrator = orchestrator

    @classmethod
    def from_config(cls, config: ClientConfig, endpoint: Optional[RpcEndpoint] = None):
        return cls(Orchestrator.from_config(config, endpoint))

    @property
    def program_id(self) -> PublicKey:
        return self.orchestrator.program_id

    @property
    def reader(self):
        return self.orchestrator.reader

    async def _read(self, address: PublicKey, kind: AccountKind) -> bytes:
        """Data of an initialized account of kind. Raises as AccountReader.read_initialized does."""
        account = await self.reader.read_initialized(address, kind)
        return account.data

    async def _list(self, kind: AccountKind, parent: Optional[PublicKey] = None) -> List[Tuple[PublicKey, bytes]]:
        accounts = await self.reader.list_accounts_of_kind(self.program_id, kind, parent)
        return [(address, account.data) for address, account in accounts]
