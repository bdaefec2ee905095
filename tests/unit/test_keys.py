"""
Unit tests for keys and signers

Tests:
- PublicKey holds immutable bytes and hashes, whatever ecdsa hands back
- Keypair signatures and secret keys are bytes
- Curve membership of wallet keys and derived addresses
- Signer is an abstract capability
"""

import pytest
from solders.pubkey import Pubkey

from unityvault.core.keys import Keypair, PublicKey, Signer, verify_signature
from unityvault.core.pda import find_program_address
from unityvault.core.transactions import TransactionBuilder, sign_transaction
from unityvault.programs.system import transfer

from tests.conftest import PROGRAM_ID

BLOCKHASH = str(PublicKey(bytes(range(32))))

alice = Keypair.from_seed(bytes([21]) * 32)
bob = Keypair.from_seed(bytes([22]) * 32)


class TestPublicKey:

    def test_keypair_key_is_hashable(self):
        key = alice.public_key
        assert type(key.raw) is bytes
        assert hash(key) == hash(PublicKey(bytes(key.raw)))
        assert {key: "alice"}[key] == "alice"
        assert len({key, alice.public_key, bob.public_key}) == 2

    def test_bytearray_is_copied_to_bytes(self):
        raw = bytearray(range(32))
        key = PublicKey(raw)
        raw[0] = 99
        assert type(key.raw) is bytes
        assert key.raw[0] == 0

    def test_wrong_length(self):
        with pytest.raises(ValueError, match="32 bytes"):
            PublicKey(bytes(31))

    def test_base58_text(self):
        key = alice.public_key
        assert PublicKey.from_string(str(key)) == key

    def test_invalid_base58(self):
        with pytest.raises(ValueError):
            PublicKey.from_string("0OIl")

    def test_solders_conversion(self):
        key = alice.public_key
        assert key.to_solders() == Pubkey.from_string(str(key))
        assert PublicKey.from_solders(key.to_solders()) == key

    def test_default_is_system_program(self):
        assert str(PublicKey.default()) == "11111111111111111111111111111111"


class TestCurve:

    def test_wallet_key_on_curve(self):
        assert alice.public_key.is_on_curve()

    def test_derived_address_off_curve(self):
        address, _ = find_program_address(PROGRAM_ID, ["community", alice.public_key])
        assert not address.is_on_curve()


class TestKeypair:

    def test_signature_is_bytes(self):
        signature = alice.sign(b"message")
        assert type(signature) is bytes
        assert len(signature) == 64
        assert verify_signature(alice.public_key, signature, b"message")

    def test_signature_rejected_for_other_key(self):
        assert not verify_signature(bob.public_key, alice.sign(b"message"), b"message")

    def test_secret_key_layout(self):
        secret = alice.secret_key()
        assert type(secret) is bytes
        assert secret[:32] == bytes([21]) * 32
        assert secret[32:] == alice.public_key.raw
        assert Keypair.from_secret_key(secret).public_key == alice.public_key

    def test_secret_key_mismatch(self):
        with pytest.raises(ValueError, match="embedded public key"):
            Keypair.from_secret_key(alice.secret_key()[:32] + bob.public_key.raw)

    def test_bad_seed_length(self):
        with pytest.raises(ValueError):
            Keypair.from_seed(bytes(16))

    def test_json_file(self, tmp_path):
        path = tmp_path / "id.json"
        alice.to_json_file(path)
        assert Keypair.from_json_file(path).public_key == alice.public_key

    def test_generated_keys_differ(self):
        assert Keypair().public_key != Keypair().public_key

    def test_transfer_builds_and_signs(self):
        """A keypair payer goes through message compilation and signing"""
        message = (TransactionBuilder(alice.public_key, BLOCKHASH)
                   .add_instruction(transfer(alice.public_key, bob.public_key, 1000))
                   .build())
        transaction = sign_transaction(message, [alice])

        assert message.account_keys[0] == alice.public_key
        assert transaction.verify_signatures()


class TestSigner:

    def test_cannot_instantiate_capability(self):
        with pytest.raises(TypeError):
            Signer()

    def test_incomplete_signer_rejected(self):
        class AddressOnly(Signer):
            @property
            def public_key(self):
                return alice.public_key

        with pytest.raises(TypeError):
            AddressOnly()

    def test_delegating_signer(self):
        """Anything with a public key and a sign method can pay"""
        class Delegating(Signer):
            def __init__(self, keypair):
                self.keypair = keypair
                self.signed = []

            @property
            def public_key(self):
                return self.keypair.public_key

            def sign(self, message):
                self.signed.append(message)
                return self.keypair.sign(message)

        signer = Delegating(bob)
        message = (TransactionBuilder(signer.public_key, BLOCKHASH)
                   .add_instruction(transfer(signer.public_key, alice.public_key, 1))
                   .build())
        transaction = sign_transaction(message, [signer])

        assert transaction.verify_signatures()
        assert len(signer.signed) == 1
