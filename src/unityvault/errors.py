"""
Unity Vault Client Errors

Every failure the orchestration layer surfaces is one of these types, so
callers can tell apart what to fix (their input), what to retry (the
network), and what to inspect (the ledger) before trying again.

- SeedTooLong:           derivation input exceeds network limits
- RemoteUnavailable:     the RPC endpoint could not be reached or answered
- StaleFreshnessToken:   the blockhash expired before the transaction landed
- Rejected:              the executor refused or failed the transaction
- TimedOut:              confirmation did not arrive in time
- NotFound:              the account does not exist
- PartiallyProvisioned:  an account is funded but was never initialized
"""

from typing import List, Optional, Sequence


class UnityVaultError(Exception):
    """Base class for all client errors."""


class SeedTooLong(UnityVaultError, ValueError):
    """Seeds exceed the per-seed length or seed count the network allows."""


class RemoteUnavailable(UnityVaultError):
    """Transport or endpoint failure on an RPC call. Safe to retry."""


class StaleFreshnessToken(UnityVaultError):
    """
    The transaction's blockhash is no longer accepted.

    Rebuild with a new blockhash and re-sign; resubmitting the same
    signed bytes will fail the same way.
    """


class Rejected(UnityVaultError):
    """
    The executor refused the transaction, or executed it with an error.

    Bad signatures, malformed instructions and insufficient funds all end
    up here. Not retried automatically.
    """

    def __init__(self, message: str, receipt=None, logs: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.receipt = receipt
        self.logs: List[str] = list(logs or [])


class TimedOut(UnityVaultError):
    """Confirmation was not observed within the configured bound."""

    def __init__(self, message: str, signature: Optional[str] = None):
        super().__init__(message)
        self.signature = signature


class NotFound(UnityVaultError):
    """Read of an address that holds no account."""

    def __init__(self, address):
        super().__init__(f"Account {address} not found")
        self.address = address


class PartiallyProvisioned(UnityVaultError):
    """
    Funding confirmed but initialization failed or never ran.

    The addresses hold the reserve balance and no program state. Re-issuing
    only the initialization step completes them.
    """

    def __init__(self, addresses, funding_receipt=None, cause: Optional[BaseException] = None):
        addresses = list(addresses)
        listed = ", ".join(str(a) for a in addresses)
        super().__init__(f"Funded but uninitialized: {listed}")
        self.addresses = addresses
        self.funding_receipt = funding_receipt
        self.cause = cause
