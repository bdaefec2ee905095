"""
Typed Instruction Parameters

Plain values a caller fills in for each Unity Vault business operation.
Field names and order follow the program's Borsh schemas; the serializer
turns them into payload bytes.

User profiles carry (full_name, email, role): the layout the backend
service both writes in createUserProfile and reads back from profile
accounts. The IDL's (username, email, bio, profileImage, socialLinks)
struct is not what any caller sends.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


@dataclass(frozen=True)
class UserProfileParams:
    full_name: str
    email: str
    role: int = 0           # 0 user, 1 moderator, ...

    def __post_init__(self):
        if not 0 <= self.role <= 255:
            raise ValueError("role must fit in a u8")


@dataclass(frozen=True)
class TwoFactorParams:
    secret: str
    backup_codes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class KycData:
    document_type: str
    document_number: str
    document_image: str
    verification_status: bool = False


@dataclass(frozen=True)
class CommunityParams:
    name: str
    description: str
    rules: str
    is_private: bool = False


@dataclass(frozen=True)
class ProposalParams:
    title: str
    description: str
    voting_duration: int            # seconds
    min_votes: int
    min_approval_percentage: int

    def __post_init__(self):
        if not 0 <= self.min_approval_percentage <= 100:
            raise ValueError("min_approval_percentage must be between 0 and 100")
        if self.voting_duration <= 0:
            raise ValueError("voting_duration must be positive")
        if self.min_votes < 0:
            raise ValueError("min_votes cannot be negative")


class VoteType(Enum):
    APPROVE = "Approve"
    REJECT = "Reject"
    ABSTAIN = "Abstain"


@dataclass(frozen=True)
class VoteParams:
    vote_type: VoteType


@dataclass(frozen=True)
class LendingPoolParams:
    interest_rate: int              # basis points
    max_loan_amount: int            # lamports
    min_loan_amount: int            # lamports

    def __post_init__(self):
        if self.min_loan_amount > self.max_loan_amount:
            raise ValueError("min_loan_amount exceeds max_loan_amount")


@dataclass(frozen=True)
class LoanParams:
    amount: int                     # lamports
    duration: int                   # seconds

    def __post_init__(self):
        if self.amount <= 0:
            raise ValueError("Loan amount must be positive")


@dataclass(frozen=True)
class TokenParams:
    name: str
    symbol: str
    decimals: int
    total_supply: int

    def __post_init__(self):
        if not 0 <= self.decimals <= 255:
            raise ValueError("decimals must fit in a u8")


@dataclass(frozen=True)
class AmountParams:
    amount: int

    def __post_init__(self):
        if self.amount <= 0:
            raise ValueError("Amount must be positive")
