"""
Instruction Builder

The receiving program reads accounts by position, so the order of account
roles is part of its contract. Each instruction kind has one fixed role
table here; callers name accounts by role and the builder lays them out.

Well-known program roles (system program, token program, rent sysvar) are
filled in automatically.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from ..core.accounts import AccountMeta
from ..core.keys import PublicKey
from ..core.transactions import Instruction
from . import serializer
from .serializer import InstructionKind
from .system import SYSTEM_PROGRAM_ID, SYSVAR_RENT_ID, TOKEN_PROGRAM_ID


@dataclass(frozen=True)
class AccountRole:
    name: str
    writable: bool = False
    signer: bool = False


def _w(name: str, signer: bool = False) -> AccountRole:
    return AccountRole(name, writable=True, signer=signer)


def _r(name: str, signer: bool = False) -> AccountRole:
    return AccountRole(name, writable=False, signer=signer)


SYSTEM_PROGRAM = _r("system_program")
TOKEN_PROGRAM = _r("token_program")
RENT_SYSVAR = _r("rent_sysvar")

WELL_KNOWN: Dict[str, PublicKey] = {
    "system_program": SYSTEM_PROGRAM_ID,
    "token_program": TOKEN_PROGRAM_ID,
    "rent_sysvar": SYSVAR_RENT_ID,
}

ROLE_TABLE: Dict[InstructionKind, Tuple[AccountRole, ...]] = {
    InstructionKind.CREATE_USER_PROFILE: (_w("user_profile"), _w("authority", signer=True), SYSTEM_PROGRAM),
    InstructionKind.UPDATE_USER_PROFILE: (_w("user_profile"), _r("authority", signer=True)),
    InstructionKind.ENABLE_TWO_FACTOR: (_w("user_profile"), _r("authority", signer=True)),
    InstructionKind.VERIFY_KYC: (_w("user_profile"), _r("authority", signer=True)),

    InstructionKind.CREATE_COMMUNITY: (_w("community"), _w("authority", signer=True), SYSTEM_PROGRAM),
    InstructionKind.UPDATE_COMMUNITY: (_w("community"), _w("authority", signer=True)),
    InstructionKind.SUSPEND_COMMUNITY: (_w("community"), _w("authority", signer=True)),

    InstructionKind.CREATE_PROPOSAL: (_w("proposal"), _w("proposer", signer=True), SYSTEM_PROGRAM),
    InstructionKind.VOTE_PROPOSAL: (_w("proposal"), _w("vote"), _w("voter", signer=True), SYSTEM_PROGRAM),

    InstructionKind.INIT_LENDING_POOL: (
        _w("lending_pool"), _w("authority", signer=True), _w("token_mint"), _w("token_vault"), SYSTEM_PROGRAM,
    ),
    InstructionKind.CREATE_LOAN: (_w("loan"), _w("lending_pool"), _w("borrower", signer=True), SYSTEM_PROGRAM),
    InstructionKind.REPAY_LOAN: (_w("loan"), _w("lending_pool"), _w("borrower", signer=True)),

    InstructionKind.CREATE_TOKEN: (
        _w("token_info"), _w("mint"), _w("token_account"), _w("creator", signer=True),
        TOKEN_PROGRAM, SYSTEM_PROGRAM, RENT_SYSVAR,
    ),
    InstructionKind.TRANSFER_TOKENS: (
        _w("from_token_account"), _w("to_token_account"), _w("owner", signer=True), _w("recipient"),
    ),
    InstructionKind.BURN_TOKENS: (_w("token_account"), _w("owner", signer=True)),
}


class InstructionBuilder:
    """Builds Unity Vault instructions for one program id."""

    def __init__(self, program_id: PublicKey):
        self.program_id = program_id

    def build(self, kind: InstructionKind, params: Any, accounts: Mapping[str, PublicKey]) -> Instruction:
        """
        Lay out accounts in the program's order and serialize the payload.

        Raises:
            ValueError: a required role is missing or an unknown role was given
        """
        roles = ROLE_TABLE[kind]
        role_names = {role.name for role in roles}

        unknown = set(accounts) - role_names
        if unknown:
            raise ValueError(f"{kind.name} has no account roles {sorted(unknown)}")

        metas = []
        for role in roles:
            pubkey = accounts.get(role.name, WELL_KNOWN.get(role.name))
            if pubkey is None:
                raise ValueError(f"{kind.name} requires account '{role.name}'")
            metas.append(AccountMeta(pubkey, is_signer=role.signer, is_writable=role.writable))

        return Instruction(
            program_id=self.program_id,
            accounts=tuple(metas),
            data=serializer.encode(kind, params),
        )

    @staticmethod
    def roles(kind: InstructionKind) -> Tuple[str, ...]:
        """Role names in program order."""
        return tuple(role.name for role in ROLE_TABLE[kind])
