"""
Unity Vault Payload Serializer

Instruction data is a nested Borsh enum: one byte selects the domain
(User, Governance, Community, Lending, Tokenization), the next selects the
operation within it, and the operation's parameters follow as a Borsh
struct. Unit operations carry no parameter bytes.

    encode(InstructionKind.CREATE_COMMUNITY, CommunityParams(...))
    -> b'\\x02\\x00' + borsh(name, description, rules, is_private)
"""

from dataclasses import asdict, is_dataclass
from enum import Enum as PyEnum, IntEnum
from typing import Any, Optional, Tuple

from borsh_construct import Bool, CStruct, Enum, I64, String, U8, U32, U64, Vec

from .params import VoteParams


class Domain(IntEnum):
    USER = 0
    GOVERNANCE = 1
    COMMUNITY = 2
    LENDING = 3
    TOKENIZATION = 4


class InstructionKind(PyEnum):
    """Every Unity Vault instruction, valued by (domain, variant)."""
    CREATE_USER_PROFILE = (Domain.USER, 0)
    UPDATE_USER_PROFILE = (Domain.USER, 1)
    ENABLE_TWO_FACTOR = (Domain.USER, 2)
    VERIFY_KYC = (Domain.USER, 3)

    CREATE_PROPOSAL = (Domain.GOVERNANCE, 0)
    VOTE_PROPOSAL = (Domain.GOVERNANCE, 1)

    CREATE_COMMUNITY = (Domain.COMMUNITY, 0)
    UPDATE_COMMUNITY = (Domain.COMMUNITY, 1)
    SUSPEND_COMMUNITY = (Domain.COMMUNITY, 2)

    INIT_LENDING_POOL = (Domain.LENDING, 0)
    CREATE_LOAN = (Domain.LENDING, 1)
    REPAY_LOAN = (Domain.LENDING, 2)

    CREATE_TOKEN = (Domain.TOKENIZATION, 0)
    TRANSFER_TOKENS = (Domain.TOKENIZATION, 1)
    BURN_TOKENS = (Domain.TOKENIZATION, 2)

    @property
    def domain(self) -> Domain:
        return self.value[0]

    @property
    def variant(self) -> int:
        return self.value[1]

    def tag(self) -> bytes:
        return bytes([self.domain, self.variant])


UserProfileParamsLayout = CStruct(
    "full_name" / String,
    "email" / String,
    "role" / U8,
)
TwoFactorLayout = CStruct(
    "secret" / String,
    "backup_codes" / Vec(String),
)
KycDataLayout = CStruct(
    "document_type" / String,
    "document_number" / String,
    "document_image" / String,
    "verification_status" / Bool,
)
CommunityParamsLayout = CStruct(
    "name" / String,
    "description" / String,
    "rules" / String,
    "is_private" / Bool,
)
ProposalParamsLayout = CStruct(
    "title" / String,
    "description" / String,
    "voting_duration" / I64,
    "min_votes" / U32,
    "min_approval_percentage" / U8,
)
VoteTypeLayout = Enum(
    "Approve",
    "Reject",
    "Abstain",
    enum_name="VoteType",
)
VoteLayout = CStruct("vote_type" / VoteTypeLayout)
LendingPoolParamsLayout = CStruct(
    "interest_rate" / U64,
    "max_loan_amount" / U64,
    "min_loan_amount" / U64,
)
LoanParamsLayout = CStruct(
    "amount" / U64,
    "duration" / I64,
)
TokenParamsLayout = CStruct(
    "name" / String,
    "symbol" / String,
    "decimals" / U8,
    "total_supply" / U64,
)
AmountLayout = CStruct("amount" / U64)

LAYOUTS = {
    InstructionKind.CREATE_USER_PROFILE: UserProfileParamsLayout,
    InstructionKind.UPDATE_USER_PROFILE: UserProfileParamsLayout,
    InstructionKind.ENABLE_TWO_FACTOR: TwoFactorLayout,
    InstructionKind.VERIFY_KYC: KycDataLayout,
    InstructionKind.CREATE_PROPOSAL: ProposalParamsLayout,
    InstructionKind.VOTE_PROPOSAL: VoteLayout,
    InstructionKind.CREATE_COMMUNITY: CommunityParamsLayout,
    InstructionKind.UPDATE_COMMUNITY: CommunityParamsLayout,
    InstructionKind.SUSPEND_COMMUNITY: None,
    InstructionKind.INIT_LENDING_POOL: LendingPoolParamsLayout,
    InstructionKind.CREATE_LOAN: LoanParamsLayout,
    InstructionKind.REPAY_LOAN: None,
    InstructionKind.CREATE_TOKEN: TokenParamsLayout,
    InstructionKind.TRANSFER_TOKENS: AmountLayout,
    InstructionKind.BURN_TOKENS: AmountLayout,
}

_KINDS_BY_TAG = {kind.value: kind for kind in InstructionKind}


def _fields(params: Any) -> dict:
    if isinstance(params, VoteParams):
        return {"vote_type": getattr(VoteTypeLayout.enum, params.vote_type.value)()}
    if is_dataclass(params):
        return asdict(params)
    if isinstance(params, dict):
        return params
    raise TypeError(f"Unsupported parameter value {params!r}")


def encode(kind: InstructionKind, params: Any = None) -> bytes:
    """Serialize an instruction kind and its parameters into payload bytes."""
    layout = LAYOUTS[kind]
    if layout is None:
        if params is not None:
            raise ValueError(f"{kind.name} takes no parameters")
        return kind.tag()
    if params is None:
        raise ValueError(f"{kind.name} requires parameters")
    return kind.tag() + layout.build(_fields(params))


def decode(data: bytes) -> Tuple[InstructionKind, Optional[Any]]:
    """
    Parse payload bytes back into (kind, parsed parameters).

    Parameters come back as a construct Container (attribute access by
    field name), or None for unit operations.
    """
    if len(data) < 2:
        raise ValueError("Instruction data too short")
    try:
        kind = _KINDS_BY_TAG[(Domain(data[0]), data[1])]
    except (ValueError, KeyError):
        raise ValueError(f"Unknown instruction tag {data[:2].hex()}") from None
    layout = LAYOUTS[kind]
    if layout is None:
        return kind, None
    return kind, layout.parse(data[2:])
