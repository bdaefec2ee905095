"""
Unity Vault Client

Client-side orchestration for the Unity Vault program on a Solana-style
ledger. Every operation follows the same path: derive a deterministic
address, make it rent-exempt, submit signed instructions, confirm, read
back.

Key Features:
- Program derived addresses with canonical bump search
- Atomic and fund-then-initialize account provisioning
- Legacy wire-format transactions signed with Ed25519
- Bounded confirmation waits and blockhash-expiry rebuilds
- Discriminant-filtered collection reads
- Community, governance, lending, tokenization and user profile clients
- An in-memory ledger for tests and offline runs

Based on: Official Solana documentation and the JSON-RPC API reference
"""

__version__ = "1.0.0"

from .errors import (
    UnityVaultError,
    SeedTooLong,
    RemoteUnavailable,
    StaleFreshnessToken,
    Rejected,
    TimedOut,
    NotFound,
    PartiallyProvisioned,
)
from .config import ClientConfig
from .core import *
from .programs import *
from .rpc import *
from .orchestrator import Orchestrator, ProvisioningResult
from .core.assembler import ProvisioningStrategy, Provision
from .core.submission import SubmissionReceipt
from .clients import *

__all__ = [
    # Errors
    'UnityVaultError', 'SeedTooLong', 'RemoteUnavailable', 'StaleFreshnessToken',
    'Rejected', 'TimedOut', 'NotFound', 'PartiallyProvisioned',

    # Configuration and pipeline
    'ClientConfig',
    'PublicKey', 'Signer', 'Keypair',
    'AccountKind', 'AccountHeader',
    'RetryPolicy',
    'Orchestrator', 'ProvisioningResult', 'ProvisioningStrategy', 'Provision', 'SubmissionReceipt',

    # Endpoints
    'RpcEndpoint', 'HttpRpcEndpoint', 'LocalLedger',

    # Domain clients
    'CommunityClient', 'GovernanceClient', 'LendingClient', 'TokenizationClient', 'UserClient',
]
