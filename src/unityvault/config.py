"""
Client Configuration

Everything that used to be process-wide (endpoint, program id, commitment)
is an explicit value handed to each client at construction.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .core.keys import PublicKey
from .core.retry import RetryPolicy

DEFAULT_RPC_URL = "http://127.0.0.1:8899"
DEFAULT_PROGRAM_ID = "9btUy7Cc2JvTWjAFYaBLfDTGuWHzXmjPXbo2z7N54wdE"

COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")


@dataclass(frozen=True)
class ClientConfig:
    """Network endpoint, program identity and confirmation behavior."""
    rpc_url: str = DEFAULT_RPC_URL
    program_id: PublicKey = field(default_factory=lambda: PublicKey.from_string(DEFAULT_PROGRAM_ID))
    commitment: str = "confirmed"
    confirm_timeout: float = 30.0   # seconds to wait for the commitment level
    poll_interval: float = 0.5      # seconds between status polls
    request_timeout: float = 10.0   # seconds per RPC request
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self):
        if self.commitment not in COMMITMENT_LEVELS:
            raise ValueError(f"Unknown commitment {self.commitment!r}, expected one of {COMMITMENT_LEVELS}")
        if self.confirm_timeout <= 0 or self.poll_interval <= 0:
            raise ValueError("confirm_timeout and poll_interval must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'ClientConfig':
        """
        Build a config from environment variables.

        UNITYVAULT_RPC_URL, PROGRAM_ID, UNITYVAULT_COMMITMENT and
        UNITYVAULT_CONFIRM_TIMEOUT are read when present; keyword overrides win.
        """
        env = os.environ if environ is None else environ
        values = {}
        if env.get("UNITYVAULT_RPC_URL"):
            values["rpc_url"] = env["UNITYVAULT_RPC_URL"]
        if env.get("PROGRAM_ID"):
            values["program_id"] = PublicKey.from_string(env["PROGRAM_ID"])
        if env.get("UNITYVAULT_COMMITMENT"):
            values["commitment"] = env["UNITYVAULT_COMMITMENT"]
        if env.get("UNITYVAULT_CONFIRM_TIMEOUT"):
            values["confirm_timeout"] = float(env["UNITYVAULT_CONFIRM_TIMEOUT"])
        values.update(overrides)
        return cls(**values)
