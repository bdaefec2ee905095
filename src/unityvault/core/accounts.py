"""
Account Model

What the client sees of ledger state:
- AccountInfo is a snapshot of one account as the executor returned it
- AccountMeta declares how an instruction touches an account
- AccountHeader is the discriminant every Unity Vault account starts with

The header exists because listing a program's accounts returns *all* of
them: communities, proposals, votes, loans. Owner equality can't tell them
apart, so each account carries its kind, an initialization flag, and the
parent it belongs to (an authority, a proposal, a pool).

Based on: https://solana.com/docs/core/accounts
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from borsh_construct import Bool, CStruct, U8

from .keys import PublicKey

LAMPORTS_PER_SOL = 1_000_000_000
MAX_ACCOUNT_DATA = 10 * 1024 * 1024


@dataclass(frozen=True)
class AccountInfo:
    """
    One account as stored on the ledger.

    Mirrors the RPC account object: balance, raw data, owning program and
    whether the account holds executable code.
    """
    lamports: int           # Balance in lamports
    data: bytes             # Account data (up to 10 MiB)
    owner: PublicKey        # Program that owns this account
    executable: bool = False
    rent_epoch: int = 0

    def __post_init__(self):
        if self.lamports < 0:
            raise ValueError("Lamports cannot be negative")
        if len(self.data) > MAX_ACCOUNT_DATA:
            raise ValueError("Account data exceeds 10 MiB limit")

    @property
    def sol_balance(self) -> float:
        return self.lamports / LAMPORTS_PER_SOL

    def data_size(self) -> int:
        return len(self.data)

    def header(self) -> Optional['AccountHeader']:
        """Decoded discriminant, or None when the data doesn't carry one."""
        return AccountHeader.try_decode(self.data)


@dataclass(frozen=True)
class AccountMeta:
    """
    Account metadata for instruction building.

    Tells the runtime how an instruction wants to access each account.
    Declaring access up front is what lets the executor schedule
    non-conflicting transactions in parallel.
    """
    pubkey: PublicKey
    is_signer: bool
    is_writable: bool

    @classmethod
    def writable(cls, pubkey: PublicKey, is_signer: bool = False) -> 'AccountMeta':
        return cls(pubkey, is_signer=is_signer, is_writable=True)

    @classmethod
    def readonly(cls, pubkey: PublicKey, is_signer: bool = False) -> 'AccountMeta':
        return cls(pubkey, is_signer=is_signer, is_writable=False)

    def __str__(self) -> str:
        flags = []
        if self.is_signer:
            flags.append("signer")
        if self.is_writable:
            flags.append("writable")
        flag_str = f"({', '.join(flags)})" if flags else "(readonly)"
        return f"{self.pubkey.short()}{flag_str}"


class AccountKind(IntEnum):
    """Discriminant stored in the first byte of every Unity Vault account."""
    UNINITIALIZED = 0
    USER_PROFILE = 1
    COMMUNITY = 2
    PROPOSAL = 3
    VOTE = 4
    LENDING_POOL = 5
    LOAN = 6
    TOKEN_INFO = 7


HeaderLayout = CStruct(
    "kind" / U8,
    "is_initialized" / Bool,
    "parent" / U8[32],
)
HEADER_SIZE = 1 + 1 + 32


@dataclass(frozen=True)
class AccountHeader:
    """
    Leading bytes of a Unity Vault account.

    parent is the relation used to rebuild collections: the authority for
    communities, proposals, pools and token infos; the proposal for votes;
    the lending pool for loans.
    """
    kind: AccountKind
    is_initialized: bool
    parent: PublicKey

    def encode(self) -> bytes:
        return HeaderLayout.build({
            "kind": int(self.kind),
            "is_initialized": self.is_initialized,
            "parent": list(self.parent.raw),
        })

    @classmethod
    def decode(cls, data: bytes) -> 'AccountHeader':
        if len(data) < HEADER_SIZE:
            raise ValueError(f"Account data too short for header: {len(data)} < {HEADER_SIZE}")
        parsed = HeaderLayout.parse(data[:HEADER_SIZE])
        return cls(
            kind=AccountKind(parsed.kind),
            is_initialized=bool(parsed.is_initialized),
            parent=PublicKey(bytes(parsed.parent)),
        )

    @classmethod
    def try_decode(cls, data: bytes) -> Optional['AccountHeader']:
        """Decode, or None for data that isn't a Unity Vault account."""
        try:
            return cls.decode(data)
        except ValueError:
            return None
