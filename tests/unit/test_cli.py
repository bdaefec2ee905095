"""
Unit tests for the command-line interface

Online commands run against the in-memory ledger by swapping the
orchestrator factory the CLI uses.
"""

import json

import pytest

from unityvault import cli
from unityvault.core.keys import Keypair, PublicKey
from unityvault.core.pda import AddressDeriver
from unityvault.orchestrator import Orchestrator

from tests.conftest import PROGRAM_ID


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("UNITYVAULT_RPC_URL", "PROGRAM_ID", "UNITYVAULT_COMMITMENT", "UNITYVAULT_CONFIRM_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def offline(monkeypatch, ledger):
    """Route every Orchestrator.from_config to the test ledger."""
    def from_config(cls, config, endpoint=None):
        return cls(ledger, config.program_id, commitment=config.commitment, poll_interval=0.01)

    monkeypatch.setattr(Orchestrator, "from_config", classmethod(from_config))
    return ledger


class TestParseSeed:

    def test_public_key(self):
        key = Keypair.from_seed(bytes([5]) * 32).public_key
        assert cli.parse_seed(str(key)) == key

    def test_text(self):
        assert cli.parse_seed("Test Community") == "Test Community"

    def test_forced_kinds(self):
        key = Keypair.from_seed(bytes([5]) * 32).public_key
        assert cli.parse_seed(f"key:{key}") == key
        assert cli.parse_seed(f"str:{key}") == str(key)

    def test_short_base58_is_text(self):
        assert cli.parse_seed("abc") == "abc"


class TestOfflineCommands:

    def test_derive(self, capsys):
        owner = Keypair.from_seed(bytes([5]) * 32).public_key
        cli.main(["derive", "community", str(owner), "Test Community"])

        address, bump = AddressDeriver(PROGRAM_ID).derive("community", owner, "Test Community")
        out = capsys.readouterr().out
        assert f"Address: {address}" in out
        assert f"Bump:    {bump}" in out

    def test_derive_seed_too_long(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["derive", "x" * 33])
        assert excinfo.value.code == 1
        assert "❌ Error" in capsys.readouterr().out

    def test_keygen(self, tmp_path, capsys):
        path = tmp_path / "id.json"
        cli.main(["keygen", str(path)])

        secret = json.loads(path.read_text())
        assert len(secret) == 64
        keypair = Keypair.from_json_file(path)
        assert str(keypair.public_key) in capsys.readouterr().out

    def test_keygen_refuses_overwrite(self, tmp_path):
        path = tmp_path / "id.json"
        cli.main(["keygen", str(path)])
        before = path.read_text()

        with pytest.raises(SystemExit):
            cli.main(["keygen", str(path)])
        assert path.read_text() == before

        cli.main(["keygen", str(path), "--force"])
        assert path.read_text() != before

    def test_no_command_prints_help(self, capsys):
        cli.main([])
        assert "usage: unityvault" in capsys.readouterr().out

    def test_bad_program_id(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--program-id", "not-base58!", "derive", "x"])
        assert excinfo.value.code == 1


class TestOnlineCommands:

    def test_rent(self, offline, capsys):
        cli.main(["rent", "1024"])
        assert f"{offline.minimum_balance(1024):,} lamports" in capsys.readouterr().out

    def test_create_community_then_inspect(self, offline, alice, tmp_path, capsys):
        keypair_path = tmp_path / "id.json"
        alice.to_json_file(keypair_path)

        cli.main(["--keypair", str(keypair_path), "create-community", "Test Community",
                  "--description", "A test community"])
        community = AddressDeriver(PROGRAM_ID).address("community", alice.public_key, "Test Community")
        assert f"Community created: {community}" in capsys.readouterr().out

        cli.main(["account", str(community)])
        out = capsys.readouterr().out
        assert "Kind:    community (initialized)" in out
        assert f"Parent:  {alice.public_key}" in out

        cli.main(["list", "--kind", "community", "--parent", str(alice.public_key)])
        out = capsys.readouterr().out
        assert "1 community account(s)" in out
        assert str(community) in out

    def test_missing_account(self, offline, capsys):
        missing = Keypair.from_seed(bytes([99]) * 32).public_key
        with pytest.raises(SystemExit):
            cli.main(["account", str(missing)])
        assert "not found" in capsys.readouterr().out

    def test_missing_keypair(self, offline, tmp_path, capsys):
        with pytest.raises(SystemExit):
            cli.main(["--keypair", str(tmp_path / "nope.json"), "vote", str(PublicKey.default()), "approve"])
        assert "keygen" in capsys.readouterr().out
