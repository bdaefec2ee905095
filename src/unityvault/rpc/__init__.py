"""
Remote Executor Access

Endpoints the client pipeline talks to:
- RpcEndpoint: the capability set every endpoint provides
- HttpRpcEndpoint: Solana JSON-RPC over HTTP
- LocalLedger: in-process executor for tests and offline runs
"""

from .endpoint import ConfirmationStatus, FreshnessToken, RpcEndpoint, SignatureStatus
from .http import HttpRpcEndpoint
from .local import InvocationContext, KeyedAccount, LocalLedger, ProgramError

__all__ = [
    'RpcEndpoint', 'FreshnessToken', 'ConfirmationStatus', 'SignatureStatus',
    'HttpRpcEndpoint',
    'LocalLedger', 'InvocationContext', 'KeyedAccount', 'ProgramError',
]
