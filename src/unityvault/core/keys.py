"""
Keys, Addresses and Signers

Every account on the ledger is addressed by 32 bytes. Most addresses are
Ed25519 public keys with a private key somewhere; program-derived addresses
are deliberately *off* the curve so that nobody can ever sign for them.

The orchestration core never touches private keys directly. It only sees
the Signer capability: a public key plus a sign(message) method. Keypair is
the in-process implementation used by tests, the CLI and examples; hardware
wallets or remote signers can provide the same two methods.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import base58
from ecdsa import BadSignatureError, Ed25519, MalformedPointError, SigningKey, VerifyingKey
from solders.pubkey import Pubkey

PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64


@dataclass(frozen=True)
class PublicKey:
    """A 32-byte account address, rendered as base58 like the rest of the ecosystem."""
    raw: bytes

    def __post_init__(self):
        # ecdsa hands back bytearray for Ed25519; keys must stay hashable
        object.__setattr__(self, 'raw', bytes(self.raw))
        if len(self.raw) != PUBLIC_KEY_LENGTH:
            raise ValueError(f"Public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(self.raw)}")

    @classmethod
    def from_string(cls, value: str) -> 'PublicKey':
        """Parse a base58 address."""
        try:
            raw = base58.b58decode(value)
        except ValueError as e:
            raise ValueError(f"Invalid base58 address {value!r}: {e}") from e
        return cls(raw)

    @classmethod
    def default(cls) -> 'PublicKey':
        """The all-zero key, which is also the System Program id."""
        return cls(bytes(PUBLIC_KEY_LENGTH))

    @classmethod
    def from_solders(cls, pubkey: Pubkey) -> 'PublicKey':
        return cls(bytes(pubkey))

    def to_solders(self) -> Pubkey:
        return Pubkey.from_bytes(self.raw)

    def is_on_curve(self) -> bool:
        """True when these bytes decode to a valid Ed25519 point."""
        return self.to_solders().is_on_curve()

    def short(self) -> str:
        text = str(self)
        return f"{text[:8]}..."

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return base58.b58encode(self.raw).decode()

    def __repr__(self) -> str:
        return f"PublicKey({self})"


def verify_signature(public_key: PublicKey, signature: bytes, message: bytes) -> bool:
    """Verify an Ed25519 signature over message."""
    try:
        vk = VerifyingKey.from_string(public_key.raw, curve=Ed25519)
        return vk.verify(signature, message)
    except (BadSignatureError, MalformedPointError, ValueError):
        return False


class Signer(ABC):
    """
    Signing capability handed to the orchestration core.

    Implementations expose the address they sign for and produce a 64-byte
    Ed25519 signature over a message. Nothing else is required.
    """

    @property
    @abstractmethod
    def public_key(self) -> PublicKey:
        pass

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        pass


class Keypair(Signer):
    """In-process Ed25519 key pair."""

    def __init__(self, signing_key: Optional[SigningKey] = None):
        self._signing_key = signing_key or SigningKey.generate(curve=Ed25519)
        self._public_key = PublicKey(self._signing_key.verifying_key.to_string())

    @classmethod
    def from_seed(cls, seed: bytes) -> 'Keypair':
        """Rebuild a key pair from its 32-byte private seed."""
        if len(seed) != 32:
            raise ValueError(f"Ed25519 seed must be 32 bytes, got {len(seed)}")
        return cls(SigningKey.from_string(seed, curve=Ed25519))

    @classmethod
    def from_secret_key(cls, secret_key: bytes) -> 'Keypair':
        """
        Load the 64-byte secret key format (seed followed by public key).

        The embedded public key is checked against the one derived from the seed.
        """
        if len(secret_key) != 64:
            raise ValueError(f"Secret key must be 64 bytes, got {len(secret_key)}")
        keypair = cls.from_seed(secret_key[:32])
        if keypair.public_key.raw != secret_key[32:]:
            raise ValueError("Secret key does not match its embedded public key")
        return keypair

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> 'Keypair':
        """Load a keypair file: a JSON array of 64 byte values."""
        with open(path) as f:
            values = json.load(f)
        return cls.from_secret_key(bytes(values))

    def to_json_file(self, path: Union[str, Path]) -> None:
        with open(path, 'w') as f:
            json.dump(list(self.secret_key()), f)

    def secret_key(self) -> bytes:
        return bytes(self._signing_key.to_string()) + self._public_key.raw

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    def sign(self, message: bytes) -> bytes:
        return bytes(self._signing_key.sign(message))

    def __repr__(self) -> str:
        return f"Keypair({self._public_key})"
