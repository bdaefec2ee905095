"""
In-Memory Ledger

A single-node executor that speaks the same capability set as a real RPC
endpoint. It exists so the whole client pipeline can run offline, in tests and
in examples.

What it models:
- Global account state (lamports, data, owner) with rent-exemption checks
- A sliding window of recent blockhashes; older ones are rejected as stale
- Signature verification over the serialized message
- Atomic execution: every instruction in a transaction applies, or none do
- The System Program (CreateAccount, Transfer) natively
- Other programs through registered handler functions

What it does not: consensus, forks, fee markets, compute budgets.
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import base58

from ..core.accounts import AccountInfo
from ..core.keys import PublicKey
from ..core.transactions import Instruction, Transaction
from ..errors import Rejected, StaleFreshnessToken
from ..programs.system import SYSTEM_PROGRAM_ID, decode_system_instruction
from .endpoint import ConfirmationStatus, FreshnessToken, RpcEndpoint, SignatureStatus

logger = logging.getLogger(__name__)

LAMPORTS_PER_BYTE_YEAR = 3480
EXEMPTION_THRESHOLD_YEARS = 2
ACCOUNT_STORAGE_OVERHEAD = 128
FEE_PER_SIGNATURE = 5000


class ProgramError(Exception):
    """Raised by instruction handlers to fail the whole transaction."""


@dataclass
class KeyedAccount:
    """
    Mutable working copy of an account during one transaction.

    Handlers read and write these; nothing reaches the ledger unless
    every instruction in the transaction succeeds.
    """
    key: PublicKey
    lamports: int
    data: bytearray
    owner: PublicKey
    executable: bool = False
    is_signer: bool = False
    is_writable: bool = False

    @classmethod
    def from_info(cls, key: PublicKey, info: Optional[AccountInfo]) -> 'KeyedAccount':
        if info is None:
            return cls(key, 0, bytearray(), SYSTEM_PROGRAM_ID)
        return cls(key, info.lamports, bytearray(info.data), info.owner, info.executable)

    def to_info(self) -> AccountInfo:
        return AccountInfo(self.lamports, bytes(self.data), self.owner, self.executable)

    @property
    def exists(self) -> bool:
        return self.lamports > 0 or len(self.data) > 0

    def transfer_lamports_to(self, other: 'KeyedAccount', amount: int) -> None:
        """Transfer lamports between accounts."""
        if amount < 0:
            raise ProgramError("Cannot transfer negative amount")
        if self.lamports < amount:
            raise ProgramError(f"Insufficient funds: {self.lamports} < {amount}")
        self.lamports -= amount
        other.lamports += amount


@dataclass
class InvocationContext:
    """What a program handler sees for one instruction."""
    program_id: PublicKey
    accounts: List[KeyedAccount]
    data: bytes
    slot: int
    minimum_balance: Callable[[int], int]
    logs: List[str] = field(default_factory=list)

    def log(self, message: str) -> None:
        self.logs.append(f"Program log: {message}")

    def allocate_and_assign(self, account: KeyedAccount, space: int) -> None:
        """
        Take ownership of a funded plain-balance account at a derived address.

        Stands in for the program's own signed call into the System Program.
        """
        if account.owner != SYSTEM_PROGRAM_ID or account.data:
            raise ProgramError(f"Account {account.key} already in use")
        if account.key.is_on_curve():
            raise ProgramError(f"Account {account.key} is not a derived address")
        if not account.is_writable:
            raise ProgramError(f"Account {account.key} is not writable")
        account.data = bytearray(space)
        account.owner = self.program_id

    def create_account(self, payer: KeyedAccount, account: KeyedAccount, space: int) -> None:
        """Fund a derived address from payer and take ownership of it."""
        if not payer.is_signer:
            raise ProgramError(f"Payer {payer.key} did not sign")
        shortfall = self.minimum_balance(space) - account.lamports
        if shortfall > 0:
            payer.transfer_lamports_to(account, shortfall)
        self.allocate_and_assign(account, space)


ProgramHandler = Callable[[InvocationContext], None]


@dataclass
class _Status:
    slot: int
    error: Optional[str]
    confirmations: int = 0


class LocalLedger(RpcEndpoint):
    """
    Complete in-process executor.

    Each accepted transaction is applied immediately in its own slot and
    becomes "confirmed" on the next status check (or after
    confirmations_required checks).
    """

    def __init__(self, recent_blockhash_limit: int = 150, confirmations_required: int = 1,
                 latency: float = 0.0, fee_per_signature: int = FEE_PER_SIGNATURE):
        """
        Args:
            recent_blockhash_limit: How many slots a blockhash stays valid
            confirmations_required: Status checks before a transaction reads as confirmed
            latency: Seconds every call sleeps, to exercise concurrent callers
            fee_per_signature: Lamports charged to the fee payer per signature
        """
        self.recent_blockhash_limit = recent_blockhash_limit
        self.confirmations_required = confirmations_required
        self.latency = latency
        self.fee_per_signature = fee_per_signature

        self._accounts: Dict[PublicKey, AccountInfo] = {}
        self._programs: Dict[PublicKey, ProgramHandler] = {}
        self._statuses: Dict[str, _Status] = {}
        self._blockhashes: List[str] = []
        self._slot = 0
        self.stall_confirmations = False
        self.submitted: List[Transaction] = []

        self._advance()

    # Ledger administration

    def register_program(self, program_id: PublicKey, handler: ProgramHandler) -> None:
        """Install an instruction handler for program_id."""
        self._programs[program_id] = handler

    def airdrop(self, pubkey: PublicKey, lamports: int) -> None:
        """Credit lamports out of thin air, creating a plain-balance account if needed."""
        current = self._accounts.get(pubkey)
        if current is None:
            self._accounts[pubkey] = AccountInfo(lamports, b"", SYSTEM_PROGRAM_ID)
        else:
            self._accounts[pubkey] = AccountInfo(current.lamports + lamports, current.data,
                                                 current.owner, current.executable)

    def set_account(self, pubkey: PublicKey, account: AccountInfo) -> None:
        self._accounts[pubkey] = account

    def get_balance(self, pubkey: PublicKey) -> int:
        account = self._accounts.get(pubkey)
        return account.lamports if account else 0

    def account_exists(self, pubkey: PublicKey) -> bool:
        return pubkey in self._accounts

    def advance_slots(self, count: int = 1) -> None:
        """Produce empty slots, ageing out old blockhashes."""
        for _ in range(count):
            self._advance()

    def current_slot(self) -> int:
        return self._slot

    def is_blockhash_valid(self, blockhash: str) -> bool:
        return blockhash in self._blockhashes

    def minimum_balance(self, space: int) -> int:
        return (ACCOUNT_STORAGE_OVERHEAD + space) * LAMPORTS_PER_BYTE_YEAR * EXEMPTION_THRESHOLD_YEARS

    # RpcEndpoint

    async def get_latest_blockhash(self, commitment: str = "confirmed") -> FreshnessToken:
        await self._delay()
        return FreshnessToken(self._blockhashes[-1], self._slot + self.recent_blockhash_limit)

    async def get_minimum_balance_for_rent_exemption(self, space: int) -> int:
        await self._delay()
        return self.minimum_balance(space)

    async def get_account_info(self, address: PublicKey,
                               commitment: str = "confirmed") -> Optional[AccountInfo]:
        await self._delay()
        return self._accounts.get(address)

    async def get_program_accounts(self, program_id: PublicKey,
                                   commitment: str = "confirmed") -> List[Tuple[PublicKey, AccountInfo]]:
        await self._delay()
        return [(key, account) for key, account in self._accounts.items() if account.owner == program_id]

    async def send_transaction(self, raw: bytes) -> str:
        await self._delay()
        try:
            transaction = Transaction.deserialize(raw)
        except ValueError as e:
            raise Rejected(f"Malformed transaction: {e}") from e

        if not self.is_blockhash_valid(transaction.message.recent_blockhash):
            raise StaleFreshnessToken("Blockhash not found")
        if not transaction.verify_signatures():
            raise Rejected("Transaction signature verification failure")

        signature = transaction.signature
        if signature in self._statuses:
            raise Rejected("Transaction already processed")

        logs = self._execute(transaction)
        self.submitted.append(transaction)
        self._statuses[signature] = _Status(slot=self._slot, error=None)
        logger.debug("Executed %s in slot %d (%d log lines)", signature[:8], self._slot, len(logs))
        self._advance()
        return signature

    async def confirm_transaction(self, signature: str, commitment: str = "confirmed") -> SignatureStatus:
        await self._delay()
        status = self._statuses.get(signature)
        if status is None or self.stall_confirmations:
            return SignatureStatus(signature, ConfirmationStatus.PENDING)

        status.confirmations += 1
        if status.confirmations < self.confirmations_required:
            level = ConfirmationStatus.PROCESSED
        else:
            level = ConfirmationStatus.CONFIRMED
        return SignatureStatus(signature, level, slot=status.slot, error=status.error)

    # Execution

    def _execute(self, transaction: Transaction) -> List[str]:
        """
        Apply a transaction atomically.

        Works on copies of every referenced account and commits only when
        fees, all instructions and the rent check succeed.
        """
        message = transaction.message
        working: Dict[PublicKey, KeyedAccount] = {}
        for i, key in enumerate(message.account_keys):
            account = KeyedAccount.from_info(key, self._accounts.get(key))
            account.is_signer = message.is_signer(i)
            account.is_writable = message.is_writable(i)
            working[key] = account

        logs: List[str] = []
        try:
            fee_payer = working[message.fee_payer]
            fee = self.fee_per_signature * len(transaction.signatures)
            if fee_payer.lamports < fee:
                raise ProgramError("Insufficient funds for fee")
            fee_payer.lamports -= fee

            for index, instruction in enumerate(message.decompile()):
                keyed = [working[meta.pubkey] for meta in instruction.accounts]
                logs.append(f"Program {instruction.program_id} invoke [{index}]")
                self._invoke(instruction, keyed, logs)
                logs.append(f"Program {instruction.program_id} success")

            self._check_rent(working.values())
        except ProgramError as e:
            logs.append(f"Program failed: {e}")
            logger.info("Transaction %s rolled back: %s", transaction.signature[:8], e)
            raise Rejected(f"Transaction simulation failed: {e}", logs=logs) from e

        for key, account in working.items():
            if account.exists:
                self._accounts[key] = account.to_info()
            else:
                self._accounts.pop(key, None)
        return logs

    def _invoke(self, instruction: Instruction, accounts: List[KeyedAccount], logs: List[str]) -> None:
        if instruction.program_id == SYSTEM_PROGRAM_ID:
            self._execute_system_instruction(instruction, accounts)
            return

        handler = self._programs.get(instruction.program_id)
        if handler is None:
            raise ProgramError(f"Program {instruction.program_id} not found")

        before = {a.key: (a.lamports, bytes(a.data), a.owner) for a in accounts}
        ctx = InvocationContext(instruction.program_id, accounts, instruction.data, self._slot,
                                self.minimum_balance)
        try:
            handler(ctx)
        finally:
            logs.extend(ctx.logs)

        for account in accounts:
            lamports, data, owner = before[account.key]
            changed = account.lamports != lamports or bytes(account.data) != data or account.owner != owner
            if changed and not account.is_writable:
                raise ProgramError(f"Instruction modified read-only account {account.key}")
            if bytes(account.data) != data and account.owner != instruction.program_id:
                raise ProgramError(f"Instruction modified data of account {account.key} it does not own")

    def _execute_system_instruction(self, instruction: Instruction, accounts: List[KeyedAccount]) -> None:
        try:
            parsed = decode_system_instruction(instruction.data)
        except ValueError as e:
            raise ProgramError(str(e)) from e

        if len(accounts) < 2:
            raise ProgramError("System instruction needs two accounts")
        source, target = accounts[0], accounts[1]
        if not source.is_signer:
            raise ProgramError(f"Funding account {source.key} did not sign")
        if not (source.is_writable and target.is_writable):
            raise ProgramError("System instruction accounts must be writable")

        if parsed["type"] == "create_account":
            if target.exists:
                raise ProgramError(f"Account {target.key} already in use")
            if not target.is_signer and target.key.is_on_curve():
                raise ProgramError(f"New account {target.key} did not sign")
            source.transfer_lamports_to(target, parsed["lamports"])
            target.data = bytearray(parsed["space"])
            target.owner = parsed["owner"]
        else:
            if source.owner != SYSTEM_PROGRAM_ID:
                raise ProgramError("Transfer source must be a system account")
            source.transfer_lamports_to(target, parsed["lamports"])

    def _check_rent(self, accounts) -> None:
        for account in accounts:
            if account.is_writable and account.exists and account.lamports < self.minimum_balance(len(account.data)):
                if account.data:
                    raise ProgramError(f"Account {account.key} would not be rent exempt")

    def _advance(self) -> None:
        """Produce a slot and its blockhash, keeping only the recent window."""
        previous = self._blockhashes[-1].encode() if self._blockhashes else b"genesis"
        self._slot += 1
        digest = hashlib.sha256(previous + self._slot.to_bytes(8, 'little')).digest()
        self._blockhashes.append(base58.b58encode(digest).decode())
        if len(self._blockhashes) > self.recent_blockhash_limit:
            self._blockhashes.pop(0)

    async def _delay(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
