"""
Shared fixtures: an in-memory ledger running a stand-in for the Unity
Vault program, and funded wallets.

VaultProgram writes what the real program would leave behind for the
client to read: an AccountHeader followed by the instruction parameters.
"""

import asyncio

import pytest

from unityvault.config import ClientConfig
from unityvault.core.accounts import HEADER_SIZE, AccountHeader, AccountKind, LAMPORTS_PER_SOL
from unityvault.core.keys import Keypair
from unityvault.core.retry import RetryPolicy
from unityvault.orchestrator import Orchestrator
from unityvault.programs.serializer import InstructionKind, decode
from unityvault.rpc.local import LocalLedger, ProgramError

PROGRAM_ID = ClientConfig().program_id

# kind -> (record index, record kind, parent index, how the record comes to exist)
#   "provisioned": created by the client before the instruction runs
#   "funded":      funded by the client, allocated by the program
#   "program":     funded and allocated by the program (payer index given)
RECORDS = {
    InstructionKind.CREATE_USER_PROFILE: (0, AccountKind.USER_PROFILE, 1, ("program", 1)),
    InstructionKind.CREATE_COMMUNITY: (0, AccountKind.COMMUNITY, 1, ("provisioned",)),
    InstructionKind.CREATE_PROPOSAL: (0, AccountKind.PROPOSAL, 1, ("provisioned",)),
    InstructionKind.VOTE_PROPOSAL: (1, AccountKind.VOTE, 0, ("program", 2)),
    InstructionKind.INIT_LENDING_POOL: (0, AccountKind.LENDING_POOL, 1, ("funded",)),
    InstructionKind.CREATE_LOAN: (0, AccountKind.LOAN, 1, ("provisioned",)),
    InstructionKind.CREATE_TOKEN: (0, AccountKind.TOKEN_INFO, 3, ("funded",)),
}

# kind -> (record index, record kind, authority index)
UPDATES = {
    InstructionKind.UPDATE_USER_PROFILE: (0, AccountKind.USER_PROFILE, 1),
    InstructionKind.ENABLE_TWO_FACTOR: (0, AccountKind.USER_PROFILE, 1),
    InstructionKind.VERIFY_KYC: (0, AccountKind.USER_PROFILE, 1),
    InstructionKind.UPDATE_COMMUNITY: (0, AccountKind.COMMUNITY, 1),
    InstructionKind.SUSPEND_COMMUNITY: (0, AccountKind.COMMUNITY, 1),
}

RECORD_SPACE = 1024


class VaultProgram:
    """
    Minimal Unity Vault executor for LocalLedger.

    Kinds listed in fail_on are refused, which is how tests make the
    business step of a transaction fail.
    """

    def __init__(self):
        self.fail_on = set()
        self.invocations = []

    def __call__(self, ctx):
        try:
            kind, _ = decode(ctx.data)
        except ValueError as e:
            raise ProgramError(f"invalid instruction data: {e}") from e
        self.invocations.append(kind)
        ctx.log(kind.name)

        if kind in self.fail_on:
            raise ProgramError(f"{kind.name} refused")

        payload = ctx.data[2:]
        if kind in RECORDS:
            self._create_record(ctx, kind, payload)
        elif kind in UPDATES:
            index, record_kind, authority = UPDATES[kind]
            account = ctx.accounts[index]
            header = AccountHeader.try_decode(bytes(account.data))
            if account.owner != ctx.program_id or header is None or header.kind != record_kind:
                raise ProgramError(f"{account.key} is not a {record_kind.name}")
            if header.parent != ctx.accounts[authority].key:
                raise ProgramError("authority mismatch")
            if payload:
                self._write(account, header, payload)

    def _create_record(self, ctx, kind, payload):
        index, record_kind, parent_index, (origin, *rest) = RECORDS[kind]
        account = ctx.accounts[index]
        if origin == "program":
            ctx.create_account(ctx.accounts[rest[0]], account, RECORD_SPACE)
        elif origin == "funded":
            ctx.allocate_and_assign(account, RECORD_SPACE)
        elif account.owner != ctx.program_id:
            raise ProgramError(f"{account.key} is not owned by the program")

        existing = AccountHeader.try_decode(bytes(account.data))
        if existing is not None and existing.is_initialized:
            raise ProgramError(f"{account.key} already initialized")
        header = AccountHeader(record_kind, True, ctx.accounts[parent_index].key)
        self._write(account, header, payload)

    @staticmethod
    def _write(account, header, payload):
        record = header.encode() + payload
        if len(record) > len(account.data):
            raise ProgramError("record does not fit")
        account.data[:len(record)] = record


@pytest.fixture
def vault():
    return VaultProgram()


@pytest.fixture
def ledger(vault):
    ledger = LocalLedger()
    ledger.register_program(PROGRAM_ID, vault)
    return ledger


@pytest.fixture
def orchestrator(ledger):
    return Orchestrator(ledger, PROGRAM_ID, confirm_timeout=1.0, poll_interval=0.01,
                        retry=RetryPolicy(backoff=0.0))


@pytest.fixture
def alice(ledger):
    keypair = Keypair.from_seed(bytes([1]) * 32)
    ledger.airdrop(keypair.public_key, 10 * LAMPORTS_PER_SOL)
    return keypair


@pytest.fixture
def bob(ledger):
    keypair = Keypair.from_seed(bytes([2]) * 32)
    ledger.airdrop(keypair.public_key, 10 * LAMPORTS_PER_SOL)
    return keypair


def run(coro):
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)


def payload_of(data: bytes) -> bytes:
    return data[HEADER_SIZE:]
