"""
Transaction and Instruction Model

This implements the ledger's transaction structure where:
- Transactions contain multiple instructions that execute atomically
- All account access is declared upfront, enabling parallel execution
- Instructions specify program, accounts, and data explicitly
- A recent blockhash bounds how long a signed transaction stays valid

The binary layout is the legacy wire format: a signature list followed by
the message, with lengths written as compact-u16 ("shortvec") integers.

Based on: https://solana.com/docs/core/transactions
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

import base58

from .accounts import AccountMeta
from .keys import PUBLIC_KEY_LENGTH, SIGNATURE_LENGTH, PublicKey, Signer, verify_signature

PACKET_DATA_SIZE = 1232     # Largest serialized transaction the network accepts
BLOCKHASH_LENGTH = 32
EMPTY_SIGNATURE = bytes(SIGNATURE_LENGTH)


def encode_shortvec(value: int) -> bytes:
    """Encode a length as compact-u16: 7 bits per byte, high bit means more."""
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"shortvec value out of range: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_shortvec(data: bytes, offset: int) -> Tuple[int, int]:
    """Decode a compact-u16 at offset. Returns (value, next offset)."""
    value = 0
    for i in range(3):
        if offset + i >= len(data):
            raise ValueError("Truncated shortvec")
        byte = data[offset + i]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value, offset + i + 1
    raise ValueError("shortvec longer than 3 bytes")


class _Reader:
    """Cursor over a byte string for deserialization."""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def take(self, n: int) -> bytes:
        if self.offset + n > len(self.data):
            raise ValueError(f"Truncated transaction: need {n} bytes at offset {self.offset}")
        chunk = self.data[self.offset:self.offset + n]
        self.offset += n
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def shortvec(self) -> int:
        value, self.offset = decode_shortvec(self.data, self.offset)
        return value


@dataclass(frozen=True)
class Instruction:
    """
    High-level instruction before compilation to indices.

    This is the developer-friendly format for building transactions.
    Immutable once built.
    """
    program_id: PublicKey               # Program to invoke
    accounts: Tuple[AccountMeta, ...]   # Accounts with access metadata, in program order
    data: bytes                         # Opaque instruction payload

    def __post_init__(self):
        object.__setattr__(self, 'accounts', tuple(self.accounts))

    def signer_keys(self) -> List[PublicKey]:
        return [meta.pubkey for meta in self.accounts if meta.is_signer]

    def __str__(self) -> str:
        return f"Instruction({self.program_id.short()}, {len(self.accounts)} accounts, {len(self.data)} bytes)"


@dataclass(frozen=True)
class MessageHeader:
    """
    Transaction message header with account access metadata.

    Tells the runtime how many accounts need to sign and which
    accounts are read-only vs writable.
    """
    num_required_signatures: int        # All signers, writable and read-only
    num_readonly_signed_accounts: int   # Read-only accounts that must sign
    num_readonly_unsigned_accounts: int # Read-only accounts (no signature)


@dataclass(frozen=True)
class CompiledInstruction:
    """
    Instruction compiled to reference accounts by index.

    Instead of embedding full account keys, we reference them by their
    position in the message's account array.
    """
    program_id_index: int
    accounts: Tuple[int, ...]
    data: bytes

    def __str__(self) -> str:
        return f"Instruction(program_id_index={self.program_id_index}, accounts={list(self.accounts)}, data_len={len(self.data)})"


@dataclass(frozen=True)
class Message:
    """
    The signed part of a transaction.

    Account keys are ordered: writable signers (fee payer first), read-only
    signers, writable non-signers, read-only non-signers.
    """
    header: MessageHeader
    account_keys: Tuple[PublicKey, ...]
    recent_blockhash: str               # base58 blockhash
    instructions: Tuple[CompiledInstruction, ...]

    def serialize(self) -> bytes:
        parts = [
            bytes([
                self.header.num_required_signatures,
                self.header.num_readonly_signed_accounts,
                self.header.num_readonly_unsigned_accounts,
            ]),
            encode_shortvec(len(self.account_keys)),
        ]
        parts.extend(key.raw for key in self.account_keys)

        blockhash = base58.b58decode(self.recent_blockhash)
        if len(blockhash) != BLOCKHASH_LENGTH:
            raise ValueError(f"Blockhash must be {BLOCKHASH_LENGTH} bytes, got {len(blockhash)}")
        parts.append(blockhash)

        parts.append(encode_shortvec(len(self.instructions)))
        for instruction in self.instructions:
            parts.append(bytes([instruction.program_id_index]))
            parts.append(encode_shortvec(len(instruction.accounts)))
            parts.append(bytes(instruction.accounts))
            parts.append(encode_shortvec(len(instruction.data)))
            parts.append(instruction.data)

        return b''.join(parts)

    @classmethod
    def _read(cls, reader: _Reader) -> 'Message':
        header = MessageHeader(reader.byte(), reader.byte(), reader.byte())
        account_keys = tuple(PublicKey(reader.take(PUBLIC_KEY_LENGTH)) for _ in range(reader.shortvec()))
        recent_blockhash = base58.b58encode(reader.take(BLOCKHASH_LENGTH)).decode()

        instructions = []
        for _ in range(reader.shortvec()):
            program_id_index = reader.byte()
            accounts = tuple(reader.take(reader.shortvec()))
            data = reader.take(reader.shortvec())
            instructions.append(CompiledInstruction(program_id_index, accounts, data))

        return cls(header, account_keys, recent_blockhash, tuple(instructions))

    @classmethod
    def deserialize(cls, data: bytes) -> 'Message':
        reader = _Reader(data)
        message = cls._read(reader)
        if reader.offset != len(data):
            raise ValueError("Trailing bytes after message")
        return message

    @property
    def fee_payer(self) -> PublicKey:
        if not self.account_keys:
            raise ValueError("Message has no accounts")
        return self.account_keys[0]

    def signer_keys(self) -> Tuple[PublicKey, ...]:
        return self.account_keys[:self.header.num_required_signatures]

    def is_signer(self, index: int) -> bool:
        return index < self.header.num_required_signatures

    def is_writable(self, index: int) -> bool:
        header = self.header
        if index < header.num_required_signatures:
            return index < header.num_required_signatures - header.num_readonly_signed_accounts
        return index < len(self.account_keys) - header.num_readonly_unsigned_accounts

    def decompile(self) -> List[Instruction]:
        """Expand compiled instructions back into keyed Instructions."""
        return [
            Instruction(
                program_id=self.account_keys[ci.program_id_index],
                accounts=tuple(
                    AccountMeta(self.account_keys[i], self.is_signer(i), self.is_writable(i))
                    for i in ci.accounts
                ),
                data=ci.data,
            )
            for ci in self.instructions
        ]


@dataclass
class Transaction:
    """
    Complete transaction: signatures followed by the message they cover.

    Signatures line up with the first num_required_signatures account keys.
    An unsigned slot holds 64 zero bytes.
    """
    message: Message
    signatures: List[bytes] = field(default_factory=list)

    @property
    def signature(self) -> str:
        """Transaction id: the fee payer's signature in base58."""
        if not self.signatures or self.signatures[0] == EMPTY_SIGNATURE:
            raise ValueError("Transaction is not signed by its fee payer")
        return base58.b58encode(self.signatures[0]).decode()

    def serialize(self) -> bytes:
        required = self.message.header.num_required_signatures
        if len(self.signatures) != required:
            raise ValueError(f"Expected {required} signatures, have {len(self.signatures)}")
        parts = [encode_shortvec(len(self.signatures))]
        parts.extend(self.signatures)
        parts.append(self.message.serialize())
        wire = b''.join(parts)
        if len(wire) > PACKET_DATA_SIZE:
            raise ValueError(f"Transaction too large: {len(wire)} > {PACKET_DATA_SIZE} bytes")
        return wire

    @classmethod
    def deserialize(cls, data: bytes) -> 'Transaction':
        reader = _Reader(data)
        signatures = [reader.take(SIGNATURE_LENGTH) for _ in range(reader.shortvec())]
        message = Message._read(reader)
        if reader.offset != len(data):
            raise ValueError("Trailing bytes after transaction")
        return cls(message=message, signatures=signatures)

    def verify_signatures(self) -> bool:
        """
        Verify all transaction signatures.

        Each required signer must provide a valid Ed25519 signature
        over the serialized message.
        """
        signer_keys = self.message.signer_keys()
        if len(self.signatures) != len(signer_keys):
            return False

        message_data = self.message.serialize()
        return all(
            verify_signature(key, signature, message_data)
            for key, signature in zip(signer_keys, self.signatures)
        )


class TransactionBuilder:
    """
    Builder for constructing transaction messages.

    Handles the fiddly part: merging access flags for accounts referenced
    by several instructions, ordering keys the way the runtime expects,
    and compiling instructions down to indices.
    """

    def __init__(self, fee_payer: PublicKey, recent_blockhash: str):
        """
        Args:
            fee_payer: Account that pays transaction fees (always first signer)
            recent_blockhash: Blockhash for replay protection
        """
        self.fee_payer = fee_payer
        self.recent_blockhash = recent_blockhash
        self.instructions: List[Instruction] = []

    def add_instruction(self, instruction: Instruction) -> 'TransactionBuilder':
        """Add an instruction to the transaction (fluent interface)."""
        self.instructions.append(instruction)
        return self

    def add_instructions(self, instructions: Iterable[Instruction]) -> 'TransactionBuilder':
        self.instructions.extend(instructions)
        return self

    def build(self) -> Message:
        """
        Build the final message.

        1. Collect every referenced account, fee payer first
        2. Merge signer/writable flags per account
        3. Order into the four header groups, keeping first-seen order
        4. Compile instructions to use indices
        """
        if not self.instructions:
            raise ValueError("Transaction must contain at least one instruction")

        # pubkey -> [is_signer, is_writable], insertion ordered
        flags: Dict[PublicKey, List[bool]] = {self.fee_payer: [True, True]}

        for instruction in self.instructions:
            for meta in instruction.accounts:
                entry = flags.setdefault(meta.pubkey, [False, False])
                entry[0] = entry[0] or meta.is_signer
                entry[1] = entry[1] or meta.is_writable
            flags.setdefault(instruction.program_id, [False, False])

        writable_signers = [k for k, (s, w) in flags.items() if s and w]
        readonly_signers = [k for k, (s, w) in flags.items() if s and not w]
        writable_non_signers = [k for k, (s, w) in flags.items() if not s and w]
        readonly_non_signers = [k for k, (s, w) in flags.items() if not s and not w]

        account_keys = writable_signers + readonly_signers + writable_non_signers + readonly_non_signers
        account_index = {key: i for i, key in enumerate(account_keys)}

        compiled = tuple(
            CompiledInstruction(
                program_id_index=account_index[instruction.program_id],
                accounts=tuple(account_index[meta.pubkey] for meta in instruction.accounts),
                data=instruction.data,
            )
            for instruction in self.instructions
        )

        header = MessageHeader(
            num_required_signatures=len(writable_signers) + len(readonly_signers),
            num_readonly_signed_accounts=len(readonly_signers),
            num_readonly_unsigned_accounts=len(readonly_non_signers),
        )

        return Message(
            header=header,
            account_keys=tuple(account_keys),
            recent_blockhash=self.recent_blockhash,
            instructions=compiled,
        )


def sign_transaction(message: Message, signers: Iterable[Signer]) -> Transaction:
    """
    Sign a message with every required signer.

    Signers may come in any order and extras are ignored, but every signer
    key the message requires must be covered.

    Raises:
        ValueError: a required signer is missing
    """
    by_key = {signer.public_key: signer for signer in signers}
    required = message.signer_keys()

    missing = [key for key in required if key not in by_key]
    if missing:
        raise ValueError(f"Missing signers: {', '.join(str(k) for k in missing)}")

    message_data = message.serialize()
    signatures = [by_key[key].sign(message_data) for key in required]
    return Transaction(message=message, signatures=signatures)
