"""
Account Reads

Listing a program's accounts returns everything it owns, across every
kind of record. Owner equality is therefore only a first cut; collections
are rebuilt by decoding each account's header and keeping the kind (and
parent) asked for.
"""

import logging
from typing import List, Optional, Tuple

from ..errors import NotFound, PartiallyProvisioned
from .accounts import AccountHeader, AccountInfo, AccountKind
from .keys import PublicKey
from .retry import RetryPolicy, retry_remote

logger = logging.getLogger(__name__)


class AccountReader:
    """Read-side queries against one endpoint."""

    def __init__(self, endpoint, commitment: str = "confirmed", retry: RetryPolicy = RetryPolicy()):
        self.endpoint = endpoint
        self.commitment = commitment
        self.retry = retry

    async def get_account(self, address: PublicKey) -> AccountInfo:
        account = await retry_remote(
            self.retry,
            lambda: self.endpoint.get_account_info(address, self.commitment),
            "getAccountInfo",
        )
        if account is None:
            raise NotFound(address)
        return account

    async def get_account_data(self, address: PublicKey) -> bytes:
        return (await self.get_account(address)).data

    async def list_program_accounts(self, program_id: PublicKey) -> List[Tuple[PublicKey, AccountInfo]]:
        """Everything program_id owns, unfiltered."""
        accounts = await retry_remote(
            self.retry,
            lambda: self.endpoint.get_program_accounts(program_id, self.commitment),
            "getProgramAccounts",
        )
        logger.debug("Program %s owns %d account(s)", program_id.short(), len(accounts))
        return accounts

    async def list_accounts_of_kind(self, program_id: PublicKey, kind: AccountKind,
                                    parent: Optional[PublicKey] = None) -> List[Tuple[PublicKey, AccountInfo]]:
        """
        Accounts whose header carries kind, and parent when given.

        Accounts without a decodable header are skipped, as are records
        not yet initialized.
        """
        matches = []
        for address, account in await self.list_program_accounts(program_id):
            header = account.header()
            if header is None or not header.is_initialized or header.kind != kind:
                continue
            if parent is not None and header.parent != parent:
                continue
            matches.append((address, account))
        return matches

    async def read_initialized(self, address: PublicKey, kind: Optional[AccountKind] = None) -> AccountInfo:
        """
        An initialized account, fetched once.

        Raises:
            NotFound: nothing at address
            PartiallyProvisioned: the account holds lamports but no
                initialized record
            ValueError: initialized, but as a different kind
        """
        account = await self.get_account(address)
        header = account.header()
        if header is None or not header.is_initialized:
            raise PartiallyProvisioned([address])
        if kind is not None and header.kind != kind:
            raise ValueError(f"Account {address} holds a {header.kind.name}, expected {kind.name}")
        return account

    async def require_initialized(self, address: PublicKey, kind: Optional[AccountKind] = None) -> AccountHeader:
        """Header of an initialized account. Raises as read_initialized does."""
        account = await self.read_initialized(address, kind)
        return account.header()
