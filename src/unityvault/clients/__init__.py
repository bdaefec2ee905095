"""
Unity Vault Domain Clients

Thin façades over the Orchestrator, one per application domain.
"""

from .base import DomainClient
from .community import CommunityClient
from .governance import GovernanceClient
from .lending import LendingClient
from .tokenization import TokenizationClient
from .user import UserClient

__all__ = [
    'DomainClient',
    'CommunityClient',
    'GovernanceClient',
    'LendingClient',
    'TokenizationClient',
    'UserClient',
]
