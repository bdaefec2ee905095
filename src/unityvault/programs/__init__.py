"""
Program Interfaces

Instruction encoders for the programs the client talks to:
- System Program: account creation and lamport transfers
- Unity Vault: the five business domains, Borsh encoded
"""

from .system import (
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    SYSVAR_RENT_ID,
    MINT_SIZE,
    TOKEN_ACCOUNT_SIZE,
    create_account,
    transfer,
    decode_system_instruction,
)
from .serializer import Domain, InstructionKind, encode, decode
from .instructions import AccountRole, InstructionBuilder, ROLE_TABLE
from .params import (
    UserProfileParams,
    TwoFactorParams,
    KycData,
    CommunityParams,
    ProposalParams,
    VoteType,
    VoteParams,
    LendingPoolParams,
    LoanParams,
    TokenParams,
    AmountParams,
)

__all__ = [
    'SYSTEM_PROGRAM_ID', 'TOKEN_PROGRAM_ID', 'SYSVAR_RENT_ID', 'MINT_SIZE', 'TOKEN_ACCOUNT_SIZE',
    'create_account', 'transfer', 'decode_system_instruction',
    'Domain', 'InstructionKind', 'encode', 'decode',
    'AccountRole', 'InstructionBuilder', 'ROLE_TABLE',
    'UserProfileParams', 'TwoFactorParams', 'KycData', 'CommunityParams', 'ProposalParams',
    'VoteType', 'VoteParams', 'LendingPoolParams', 'LoanParams', 'TokenParams', 'AmountParams',
]
