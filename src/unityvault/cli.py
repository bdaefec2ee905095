#!/usr/bin/env python3
"""
Unity Vault CLI

A command-line interface over the Unity Vault client. Offline commands
(derive, keygen) need nothing but the program id; the rest talk to an RPC
endpoint given by --url or UNITYVAULT_RPC_URL.

Usage:
    unityvault derive community <owner> "Test Community"   # Derived address and bump
    unityvault rent 1024                                   # Rent-exempt reserve
    unityvault account <address>                           # Inspect an account
    unityvault list --kind community --parent <owner>      # Program accounts by kind
    unityvault create-community "Name" --description ...   # Create a community
    unityvault vote <proposal> approve                     # Vote on a proposal
    unityvault keygen ./id.json                            # New keypair file
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import base58

from .clients.community import CommunityClient
from .clients.governance import GovernanceClient
from .config import COMMITMENT_LEVELS, ClientConfig
from .core.accounts import LAMPORTS_PER_SOL, AccountKind
from .core.keys import PUBLIC_KEY_LENGTH, Keypair, PublicKey
from .core.pda import AddressDeriver, Seed
from .errors import UnityVaultError
from .orchestrator import Orchestrator
from .programs.params import CommunityParams, VoteType

DEFAULT_KEYPAIR_PATH = Path.home() / ".config" / "solana" / "id.json"


def parse_seed(text: str) -> Seed:
    """
    Interpret a seed argument.

    "key:<base58>" and "str:<text>" force a kind; otherwise anything that
    decodes to 32 bytes of base58 is a public key and the rest is text.
    """
    if text.startswith("key:"):
        return PublicKey.from_string(text[4:])
    if text.startswith("str:"):
        return text[4:]
    try:
        raw = base58.b58decode(text)
    except ValueError:
        return text
    return PublicKey(raw) if len(raw) == PUBLIC_KEY_LENGTH else text


class UnityVaultCLI:
    """
    Command implementations.

    Prints human-friendly progress; library logging goes to stderr only
    with --verbose.
    """

    def __init__(self, config: ClientConfig, keypair_path: Path = DEFAULT_KEYPAIR_PATH):
        self.config = config
        self.keypair_path = Path(keypair_path)

    def load_keypair(self) -> Keypair:
        """Load the signing keypair from its JSON file."""
        if not self.keypair_path.exists():
            raise FileNotFoundError(f"No keypair at {self.keypair_path}. Run 'unityvault keygen {self.keypair_path}'")
        return Keypair.from_json_file(self.keypair_path)

    def derive(self, seeds: List[str]):
        """Print the derived address and bump for seeds."""
        deriver = AddressDeriver(self.config.program_id)
        address, bump = deriver.derive(*(parse_seed(s) for s in seeds))
        print(f"🔑 Derived address for program {self.config.program_id}:")
        print(f"   Address: {address}")
        print(f"   Bump:    {bump}")

    def keygen(self, outfile: Path, force: bool = False):
        """Write a fresh keypair file."""
        outfile = Path(outfile)
        if outfile.exists() and not force:
            raise FileExistsError(f"{outfile} already exists (use --force to overwrite)")
        keypair = Keypair()
        outfile.parent.mkdir(parents=True, exist_ok=True)
        keypair.to_json_file(outfile)
        print(f"🆕 Wrote keypair to {outfile}")
        print(f"   Public key: {keypair.public_key}")

    async def rent(self, space: int):
        async with Orchestrator.from_config(self.config) as orchestrator:
            quote = await orchestrator.reserve.minimum_balance(space)
        print(f"💰 Rent-exempt reserve for {space} bytes:")
        print(f"   {quote.lamports / LAMPORTS_PER_SOL:.9f} SOL ({quote.lamports:,} lamports)")

    async def account(self, address: str):
        async with Orchestrator.from_config(self.config) as orchestrator:
            info = await orchestrator.reader.get_account(PublicKey.from_string(address))

        print(f"📦 Account {address}:")
        print(f"   Balance: {info.sol_balance:.9f} SOL ({info.lamports:,} lamports)")
        print(f"   Owner:   {info.owner}")
        print(f"   Data:    {info.data_size()} bytes")
        header = info.header() if info.owner == self.config.program_id else None
        if header is not None:
            state = "initialized" if header.is_initialized else "uninitialized"
            print(f"   Kind:    {header.kind.name.lower()} ({state})")
            print(f"   Parent:  {header.parent}")

    async def list_accounts(self, kind: Optional[str], parent: Optional[str]):
        parent_key = PublicKey.from_string(parent) if parent else None
        async with Orchestrator.from_config(self.config) as orchestrator:
            if kind is None:
                accounts = await orchestrator.reader.list_program_accounts(self.config.program_id)
            else:
                accounts = await orchestrator.reader.list_accounts_of_kind(
                    self.config.program_id, AccountKind[kind.upper()], parent_key)

        label = kind or "program"
        print(f"📋 {len(accounts)} {label} account(s):")
        for address, info in accounts:
            print(f"   {address}  {info.lamports:>14,} lamports  {info.data_size():>6} bytes")

    async def create_community(self, name: str, description: str, rules: str, private: bool):
        authority = self.load_keypair()
        params = CommunityParams(name=name, description=description, rules=rules, is_private=private)

        print(f"🏘️  Creating community '{name}' as {authority.public_key}")
        async with Orchestrator.from_config(self.config) as orchestrator:
            address, receipt = await CommunityClient(orchestrator).create_community(authority, params)
        print(f"✅ Community created: {address}")
        print(f"   Signature: {receipt.signature} (slot {receipt.slot})")

    async def vote(self, proposal: str, choice: str):
        voter = self.load_keypair()
        vote_type = VoteType[choice.upper()]

        print(f"🗳️  Voting {vote_type.value} on {proposal}")
        async with Orchestrator.from_config(self.config) as orchestrator:
            vote, receipt = await GovernanceClient(orchestrator).vote(
                voter, PublicKey.from_string(proposal), vote_type)
        print(f"✅ Vote recorded: {vote}")
        print(f"   Signature: {receipt.signature} (slot {receipt.slot})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unityvault",
        description="Unity Vault CLI - client for the Unity Vault program",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  unityvault derive community <owner> "Test Community"
  unityvault rent 1024
  unityvault account <address>
  unityvault list --kind community --parent <owner>
  unityvault create-community "Test Community" --description "..." --rules "..."
  unityvault vote <proposal> approve
  unityvault keygen ~/.config/solana/id.json
        """
    )
    parser.add_argument('--url', help='RPC endpoint (default: UNITYVAULT_RPC_URL or localhost)')
    parser.add_argument('--program-id', help='Unity Vault program id (default: PROGRAM_ID)')
    parser.add_argument('--commitment', choices=COMMITMENT_LEVELS, help='Confirmation level to wait for')
    parser.add_argument('--keypair', type=Path, default=DEFAULT_KEYPAIR_PATH, help='Signer keypair file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log RPC traffic and retries')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    derive_parser = subparsers.add_parser('derive', help='Derive a program address')
    derive_parser.add_argument('seeds', nargs='+', help='Seeds; prefix with key: or str: to force a kind')

    rent_parser = subparsers.add_parser('rent', help='Rent-exempt reserve for an account size')
    rent_parser.add_argument('space', type=int, help='Account size in bytes')

    account_parser = subparsers.add_parser('account', help='Show an account')
    account_parser.add_argument('address', help='Account address')

    list_parser = subparsers.add_parser('list', help='List program accounts')
    list_parser.add_argument('--kind', choices=[k.name.lower() for k in AccountKind if k is not AccountKind.UNINITIALIZED], help='Account kind')
    list_parser.add_argument('--parent', help='Only accounts belonging to this address')

    community_parser = subparsers.add_parser('create-community', help='Create a community')
    community_parser.add_argument('name', help='Community name (unique per authority)')
    community_parser.add_argument('--description', default='', help='Description')
    community_parser.add_argument('--rules', default='', help='Rules')
    community_parser.add_argument('--private', action='store_true', help='Make the community private')

    vote_parser = subparsers.add_parser('vote', help='Vote on a proposal')
    vote_parser.add_argument('proposal', help='Proposal address')
    vote_parser.add_argument('choice', choices=[v.name.lower() for v in VoteType], help='Vote')

    keygen_parser = subparsers.add_parser('keygen', help='Generate a keypair file')
    keygen_parser.add_argument('outfile', type=Path, help='Where to write the keypair')
    keygen_parser.add_argument('--force', action='store_true', help='Overwrite an existing file')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return

    try:
        overrides = {}
        if args.url:
            overrides['rpc_url'] = args.url
        if args.program_id:
            overrides['program_id'] = PublicKey.from_string(args.program_id)
        if args.commitment:
            overrides['commitment'] = args.commitment
        cli = UnityVaultCLI(ClientConfig.from_env(**overrides), keypair_path=args.keypair)

        if args.command == 'derive':
            cli.derive(args.seeds)

        elif args.command == 'keygen':
            cli.keygen(args.outfile, args.force)

        elif args.command == 'rent':
            asyncio.run(cli.rent(args.space))

        elif args.command == 'account':
            asyncio.run(cli.account(args.address))

        elif args.command == 'list':
            asyncio.run(cli.list_accounts(args.kind, args.parent))

        elif args.command == 'create-community':
            asyncio.run(cli.create_community(args.name, args.description, args.rules, args.private))

        elif args.command == 'vote':
            asyncio.run(cli.vote(args.proposal, args.choice))

    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        sys.exit(0)

    except (UnityVaultError, ValueError, OSError) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
