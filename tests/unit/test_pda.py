"""
Unit tests for derived addresses

Tests:
- Determinism of address and bump
- Off-curve results and bump search
- Seed normalization and ordering
- Seed limits raised before any network activity
"""

import pytest

from unityvault.clients.community import CommunityClient
from unityvault.core.keys import Keypair
from unityvault.core.pda import (
    MAX_SEED_LEN,
    MAX_SEEDS,
    AddressDeriver,
    create_program_address,
    find_program_address,
    seed_bytes,
)
from unityvault.errors import SeedTooLong
from unityvault.programs.params import CommunityParams

from tests.conftest import PROGRAM_ID, run

OWNER = Keypair.from_seed(bytes(range(32))).public_key


class TestFindProgramAddress:
    """find_program_address: canonical bump search"""

    def test_deterministic(self):
        """Same program and seeds always give the same address and bump"""
        first = find_program_address(PROGRAM_ID, ["community", OWNER, "Test Community"])
        second = find_program_address(PROGRAM_ID, ["community", OWNER, "Test Community"])
        assert first == second

    def test_deriver_matches_function(self):
        deriver = AddressDeriver(PROGRAM_ID)
        assert deriver.derive("vote", OWNER) == find_program_address(PROGRAM_ID, ["vote", OWNER])
        assert deriver.address("vote", OWNER) == deriver.derive("vote", OWNER)[0]

    def test_result_is_off_curve(self):
        address, bump = find_program_address(PROGRAM_ID, ["user_profile", OWNER])
        assert not address.is_on_curve()
        assert 0 <= bump <= 255

    def test_bump_reproduces_address(self):
        """The returned bump, appended as a seed, yields the same address"""
        address, bump = find_program_address(PROGRAM_ID, ["lending_pool", OWNER])
        assert create_program_address(PROGRAM_ID, ["lending_pool", OWNER, bytes([bump])]) == address

    def test_seed_order_matters(self):
        a = find_program_address(PROGRAM_ID, ["community", "alpha"])[0]
        b = find_program_address(PROGRAM_ID, ["alpha", "community"])[0]
        assert a != b

    def test_program_id_matters(self):
        other = Keypair.from_seed(bytes([9]) * 32).public_key
        assert (find_program_address(PROGRAM_ID, ["community"])[0]
                != find_program_address(other, ["community"])[0])

    def test_text_and_bytes_seeds_agree(self):
        assert (find_program_address(PROGRAM_ID, ["community"])
                == find_program_address(PROGRAM_ID, [b"community"]))

    def test_key_seed_uses_raw_bytes(self):
        assert seed_bytes(OWNER) == OWNER.raw
        assert (find_program_address(PROGRAM_ID, [OWNER])
                == find_program_address(PROGRAM_ID, [OWNER.raw]))


class TestSeedLimits:
    """Seed length and count limits"""

    def test_seed_at_limit_accepted(self):
        find_program_address(PROGRAM_ID, ["x" * MAX_SEED_LEN])

    def test_seed_over_limit_rejected(self):
        with pytest.raises(SeedTooLong):
            find_program_address(PROGRAM_ID, ["x" * (MAX_SEED_LEN + 1)])

    def test_multibyte_text_counts_bytes(self):
        """Limit applies to the UTF-8 encoding, not characters"""
        with pytest.raises(SeedTooLong):
            find_program_address(PROGRAM_ID, ["é" * 17])

    def test_too_many_seeds_rejected(self):
        """The bump takes the last seed slot"""
        find_program_address(PROGRAM_ID, [b"s"] * (MAX_SEEDS - 1))
        with pytest.raises(SeedTooLong):
            find_program_address(PROGRAM_ID, [b"s"] * MAX_SEEDS)

    def test_seed_too_long_is_value_error(self):
        with pytest.raises(ValueError):
            find_program_address(PROGRAM_ID, [b"x" * 40])

    def test_long_name_fails_before_network(self, orchestrator, ledger, alice):
        """A community name over 32 bytes never reaches the ledger"""
        client = CommunityClient(orchestrator)
        params = CommunityParams(name="N" * 33, description="d", rules="r")
        slot = ledger.current_slot()
        with pytest.raises(SeedTooLong):
            run(client.create_community(alice, params))
        assert ledger.submitted == []
        assert ledger.current_slot() == slot


class TestCreateProgramAddress:

    def test_bumps_above_canonical_are_on_curve(self):
        """Every bump skipped by the search yields an on-curve digest and is refused"""
        for i in range(16):
            seeds = ["bump", bytes([i])]
            _, bump = find_program_address(PROGRAM_ID, seeds)
            for skipped in range(bump + 1, 256):
                with pytest.raises(ValueError):
                    create_program_address(PROGRAM_ID, seeds + [bytes([skipped])])

    def test_seed_limits_apply(self):
        with pytest.raises(SeedTooLong):
            create_program_address(PROGRAM_ID, [b"x" * 33])
