"""
Program Derived Addresses

A derived address is a hash of (seeds, bump, program id) that is rejected
if it happens to be a valid Ed25519 point. Landing off the curve guarantees
no private key exists for it, so only the owning program can authorize
changes to the account. The bump search is solders' Pubkey; this module
normalizes seeds and enforces the network's seed limits in front of it.

Callers rely on determinism: the same (program id, seeds) always yields the
same address and bump, in any process, at any time. That is what lets a
client recompute "the community named X owned by Y" instead of storing it.

Based on: https://solana.com/docs/core/pda
"""

import hashlib
from typing import List, Sequence, Tuple, Union

from solders.pubkey import Pubkey

from ..errors import SeedTooLong
from .keys import PublicKey

MAX_SEED_LEN = 32
MAX_SEEDS = 16
PDA_MARKER = b"ProgramDerivedAddress"

Seed = Union[bytes, str, PublicKey]


def seed_bytes(seed: Seed) -> bytes:
    """Normalize a seed: text is UTF-8, keys are their 32 raw bytes."""
    if isinstance(seed, PublicKey):
        return seed.raw
    if isinstance(seed, str):
        return seed.encode("utf-8")
    return bytes(seed)


def validate_seeds(seeds: Sequence[bytes], max_seeds: int = MAX_SEEDS - 1) -> None:
    """Reject seed tuples the network would refuse. By default leaves room for the bump seed."""
    if len(seeds) > max_seeds:
        raise SeedTooLong(f"Too many seeds: {len(seeds)} (max {max_seeds})")
    for i, seed in enumerate(seeds):
        if len(seed) > MAX_SEED_LEN:
            raise SeedTooLong(f"Seed {i} is {len(seed)} bytes (max {MAX_SEED_LEN})")


def _normalize(seeds: Sequence[Seed], max_seeds: int) -> List[bytes]:
    raw_seeds = [seed_bytes(s) for s in seeds]
    validate_seeds(raw_seeds, max_seeds)
    return raw_seeds


def create_program_address(program_id: PublicKey, seeds: Sequence[Seed]) -> PublicKey:
    """
    Hash seeds into an address for program_id with no bump search.

    Raises ValueError when the result is on the curve; the caller picked a
    bump that doesn't work. Pubkey.create_program_address panics instead
    of raising on that case, so the digest is checked here first.
    """
    raw_seeds = _normalize(seeds, MAX_SEEDS)
    hasher = hashlib.sha256()
    for seed in raw_seeds:
        hasher.update(seed)
    hasher.update(program_id.raw)
    hasher.update(PDA_MARKER)
    address = Pubkey.from_bytes(hasher.digest())
    if address.is_on_curve():
        raise ValueError("Derived address lies on the Ed25519 curve")
    return PublicKey.from_solders(address)


def find_program_address(program_id: PublicKey, seeds: Sequence[Seed]) -> Tuple[PublicKey, int]:
    """
    Find the canonical derived address: the first bump from 255 down
    that lands off the curve.
    """
    raw_seeds = _normalize(seeds, MAX_SEEDS - 1)
    address, bump = Pubkey.find_program_address(raw_seeds, program_id.to_solders())
    return PublicKey.from_solders(address), bump


class AddressDeriver:
    """Derives addresses for one program. Stateless apart from the program id."""

    def __init__(self, program_id: PublicKey):
        self.program_id = program_id

    def derive(self, *seeds: Seed) -> Tuple[PublicKey, int]:
        return find_program_address(self.program_id, seeds)

    def address(self, *seeds: Seed) -> PublicKey:
        """Derived address only, for lookups that don't need the bump."""
        return self.derive(*seeds)[0]
