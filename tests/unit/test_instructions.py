"""
Unit tests for InstructionBuilder and the System Program encoders
"""

import pytest

from unityvault.core.accounts import AccountMeta
from unityvault.core.keys import Keypair
from unityvault.programs.instructions import ROLE_TABLE, InstructionBuilder
from unityvault.programs.params import AmountParams, CommunityParams, LoanParams, TokenParams
from unityvault.programs.serializer import InstructionKind, encode
from unityvault.programs.system import (
    SYSTEM_PROGRAM_ID,
    SYSVAR_RENT_ID,
    TOKEN_PROGRAM_ID,
    create_account,
    decode_system_instruction,
    transfer,
)

from tests.conftest import PROGRAM_ID

keys = [Keypair.from_seed(bytes([20 + i]) * 32).public_key for i in range(6)]


class TestInstructionBuilder:
    """Role tables and account layout"""

    def setup_method(self):
        self.builder = InstructionBuilder(PROGRAM_ID)

    def test_every_kind_has_a_role_table(self):
        assert set(ROLE_TABLE) == set(InstructionKind)

    def test_create_community_layout(self):
        community, authority = keys[:2]
        params = CommunityParams("Test Community", "d", "r")
        instruction = self.builder.build(
            InstructionKind.CREATE_COMMUNITY, params, {"community": community, "authority": authority})

        assert instruction.program_id == PROGRAM_ID
        assert instruction.accounts == (
            AccountMeta(community, is_signer=False, is_writable=True),
            AccountMeta(authority, is_signer=True, is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        )
        assert instruction.data == encode(InstructionKind.CREATE_COMMUNITY, params)

    def test_create_token_fills_well_known_programs(self):
        token_info, mint, token_account, creator = keys[:4]
        instruction = self.builder.build(
            InstructionKind.CREATE_TOKEN, TokenParams("Gold", "GLD", 6, 1000),
            {"token_info": token_info, "mint": mint, "token_account": token_account, "creator": creator},
        )
        assert [m.pubkey for m in instruction.accounts] == [
            token_info, mint, token_account, creator, TOKEN_PROGRAM_ID, SYSTEM_PROGRAM_ID, SYSVAR_RENT_ID,
        ]
        assert instruction.signer_keys() == [creator]

    def test_loan_role_order(self):
        assert InstructionBuilder.roles(InstructionKind.CREATE_LOAN) == (
            "loan", "lending_pool", "borrower", "system_program")
        instruction = self.builder.build(
            InstructionKind.CREATE_LOAN, LoanParams(amount=10, duration=60),
            {"borrower": keys[2], "loan": keys[0], "lending_pool": keys[1]},
        )
        assert [m.pubkey for m in instruction.accounts][:3] == keys[:3]

    def test_user_update_authority_readonly(self):
        instruction = self.builder.build(
            InstructionKind.UPDATE_USER_PROFILE,
            {"full_name": "A", "email": "a@b", "role": 0},
            {"user_profile": keys[0], "authority": keys[1]},
        )
        assert instruction.accounts[1] == AccountMeta(keys[1], is_signer=True, is_writable=False)

    def test_missing_role(self):
        with pytest.raises(ValueError, match="requires account 'authority'"):
            self.builder.build(InstructionKind.SUSPEND_COMMUNITY, None, {"community": keys[0]})

    def test_unknown_role(self):
        with pytest.raises(ValueError, match="no account roles"):
            self.builder.build(InstructionKind.BURN_TOKENS, AmountParams(1),
                               {"token_account": keys[0], "owner": keys[1], "mint": keys[2]})


class TestSystemInstructions:

    def test_create_account_for_derived_address(self):
        payer, new, owner = keys[:3]
        instruction = create_account(payer, new, 5000, 1024, owner, new_account_signs=False)
        assert instruction.program_id == SYSTEM_PROGRAM_ID
        assert instruction.accounts == (AccountMeta.writable(payer, True), AccountMeta.writable(new, False))
        assert instruction.data[:4] == (0).to_bytes(4, "little")
        assert decode_system_instruction(instruction.data) == {
            "type": "create_account", "lamports": 5000, "space": 1024, "owner": owner,
        }

    def test_create_account_keyed_cosigns(self):
        instruction = create_account(keys[0], keys[1], 1, 82, TOKEN_PROGRAM_ID)
        assert instruction.signer_keys() == [keys[0], keys[1]]

    def test_transfer(self):
        instruction = transfer(keys[0], keys[1], 123)
        assert instruction.data == (2).to_bytes(4, "little") + (123).to_bytes(8, "little")
        assert decode_system_instruction(instruction.data) == {"type": "transfer", "lamports": 123}
        assert instruction.signer_keys() == [keys[0]]

    def test_unknown_system_instruction(self):
        with pytest.raises(ValueError):
            decode_system_instruction((9).to_bytes(4, "little"))
