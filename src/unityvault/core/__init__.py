"""
Unity Vault Client Core

The shared pipeline every domain operation runs through: derive an
address, quote its reserve, assemble, sign, submit, confirm, read back.

Only the self-contained building blocks are re-exported here. The
assembler, submission client and reader depend on the program encoders
and are imported from their own modules.
"""

from .keys import PublicKey, Signer, Keypair
from .accounts import AccountInfo, AccountMeta, AccountKind, AccountHeader, HEADER_SIZE
from .pda import AddressDeriver, find_program_address, create_program_address, MAX_SEED_LEN, MAX_SEEDS
from .transactions import (
    Instruction,
    Message,
    MessageHeader,
    CompiledInstruction,
    Transaction,
    TransactionBuilder,
    sign_transaction,
)
from .retry import RetryPolicy, NO_RETRY
from .rent import ReserveCalculator, ReserveQuote

__all__ = [
    'PublicKey', 'Signer', 'Keypair',
    'AccountInfo', 'AccountMeta', 'AccountKind', 'AccountHeader', 'HEADER_SIZE',
    'AddressDeriver', 'find_program_address', 'create_program_address', 'MAX_SEED_LEN', 'MAX_SEEDS',
    'Instruction', 'Message', 'MessageHeader', 'CompiledInstruction',
    'Transaction', 'TransactionBuilder', 'sign_transaction',
    'RetryPolicy', 'NO_RETRY',
    'ReserveCalculator', 'ReserveQuote',
]
