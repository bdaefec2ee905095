"""
Unit tests for instruction payloads

Tests:
- Domain and variant tags
- Borsh layout of parameters
- Unit operations without parameters
- Decoding back to kind and fields
"""

import pytest

from unityvault.programs.params import (
    AmountParams,
    CommunityParams,
    LendingPoolParams,
    ProposalParams,
    TwoFactorParams,
    UserProfileParams,
    VoteParams,
    VoteType,
)
from unityvault.programs.serializer import Domain, InstructionKind, decode, encode


def _string(text: str) -> bytes:
    raw = text.encode("utf-8")
    return len(raw).to_bytes(4, "little") + raw


class TestTags:
    """Two-byte domain/variant prefix"""

    @pytest.mark.parametrize("kind,tag", [
        (InstructionKind.CREATE_USER_PROFILE, b"\x00\x00"),
        (InstructionKind.VERIFY_KYC, b"\x00\x03"),
        (InstructionKind.CREATE_PROPOSAL, b"\x01\x00"),
        (InstructionKind.VOTE_PROPOSAL, b"\x01\x01"),
        (InstructionKind.CREATE_COMMUNITY, b"\x02\x00"),
        (InstructionKind.SUSPEND_COMMUNITY, b"\x02\x02"),
        (InstructionKind.INIT_LENDING_POOL, b"\x03\x00"),
        (InstructionKind.REPAY_LOAN, b"\x03\x02"),
        (InstructionKind.CREATE_TOKEN, b"\x04\x00"),
        (InstructionKind.BURN_TOKENS, b"\x04\x02"),
    ])
    def test_tag(self, kind, tag):
        assert kind.tag() == tag

    def test_domain_values(self):
        assert [int(d) for d in Domain] == [0, 1, 2, 3, 4]


class TestEncode:
    """Parameter layouts"""

    def test_create_community(self):
        params = CommunityParams("Test Community", "A test community", "Be nice", is_private=False)
        assert encode(InstructionKind.CREATE_COMMUNITY, params) == (
            b"\x02\x00" + _string("Test Community") + _string("A test community") + _string("Be nice") + b"\x00"
        )

    def test_user_profile(self):
        params = UserProfileParams("Ada Lovelace", "ada@example.com", role=1)
        assert encode(InstructionKind.CREATE_USER_PROFILE, params) == (
            b"\x00\x00" + _string("Ada Lovelace") + _string("ada@example.com") + b"\x01"
        )

    def test_proposal_integers(self):
        params = ProposalParams("T", "D", voting_duration=86400, min_votes=3, min_approval_percentage=60)
        data = encode(InstructionKind.CREATE_PROPOSAL, params)
        tail = (86400).to_bytes(8, "little", signed=True) + (3).to_bytes(4, "little") + bytes([60])
        assert data.endswith(tail)

    def test_lending_pool(self):
        params = LendingPoolParams(interest_rate=500, max_loan_amount=10**9, min_loan_amount=10**6)
        assert encode(InstructionKind.INIT_LENDING_POOL, params) == (
            b"\x03\x00" + (500).to_bytes(8, "little") + (10**9).to_bytes(8, "little") + (10**6).to_bytes(8, "little")
        )

    @pytest.mark.parametrize("vote_type,index", [
        (VoteType.APPROVE, 0),
        (VoteType.REJECT, 1),
        (VoteType.ABSTAIN, 2),
    ])
    def test_vote_variant_index(self, vote_type, index):
        assert encode(InstructionKind.VOTE_PROPOSAL, VoteParams(vote_type)) == bytes([1, 1, index])

    def test_two_factor_vector(self):
        params = TwoFactorParams("secret", ["a", "bc"])
        assert encode(InstructionKind.ENABLE_TWO_FACTOR, params) == (
            b"\x00\x02" + _string("secret") + (2).to_bytes(4, "little") + _string("a") + _string("bc")
        )

    def test_dict_params_accepted(self):
        assert encode(InstructionKind.BURN_TOKENS, {"amount": 7}) == encode(InstructionKind.BURN_TOKENS, AmountParams(7))

    def test_unit_operation(self):
        assert encode(InstructionKind.SUSPEND_COMMUNITY) == b"\x02\x02"
        assert encode(InstructionKind.REPAY_LOAN) == b"\x03\x02"

    def test_unit_operation_rejects_params(self):
        with pytest.raises(ValueError):
            encode(InstructionKind.REPAY_LOAN, AmountParams(1))

    def test_missing_params(self):
        with pytest.raises(ValueError):
            encode(InstructionKind.CREATE_COMMUNITY)


class TestDecode:

    def test_decode_community(self):
        params = CommunityParams("Test Community", "desc", "rules", is_private=True)
        kind, fields = decode(encode(InstructionKind.UPDATE_COMMUNITY, params))
        assert kind is InstructionKind.UPDATE_COMMUNITY
        assert fields.name == "Test Community"
        assert fields.is_private is True

    def test_decode_unit(self):
        assert decode(b"\x02\x02") == (InstructionKind.SUSPEND_COMMUNITY, None)

    @pytest.mark.parametrize("data", [b"", b"\x02", b"\x09\x00", b"\x02\x07"])
    def test_unknown_or_short(self, data):
        with pytest.raises(ValueError):
            decode(data)


class TestParamValidation:

    def test_approval_percentage_bounds(self):
        with pytest.raises(ValueError):
            ProposalParams("T", "D", voting_duration=10, min_votes=1, min_approval_percentage=101)

    def test_pool_loan_bounds(self):
        with pytest.raises(ValueError):
            LendingPoolParams(interest_rate=1, max_loan_amount=10, min_loan_amount=11)

    def test_amount_positive(self):
        with pytest.raises(ValueError):
            AmountParams(0)
