"""
Community Registry Client

Communities live at ("community", authority, name), so one authority can
run many communities and a name is unique per authority.
"""

from typing import List, Tuple

from ..core.accounts import AccountKind
from ..core.assembler import Provision, ProvisioningStrategy
from ..core.keys import PublicKey, Signer
from ..core.submission import SubmissionReceipt
from ..programs.params import CommunityParams
from ..programs.serializer import InstructionKind
from .base import DEFAULT_ACCOUNT_SPACE, DomainClient

COMMUNITY_SPACE = DEFAULT_ACCOUNT_SPACE


class CommunityClient(DomainClient):

    def community_address(self, authority: PublicKey, name: str) -> PublicKey:
        return self.orchestrator.derive("community", authority, name)[0]

    async def create_community(self, authority: Signer,
                               params: CommunityParams) -> Tuple[PublicKey, SubmissionReceipt]:
        """Create and initialize a community in a single transaction."""
        community = self.community_address(authority.public_key, params.name)
        instruction = self.orchestrator.instruction(
            InstructionKind.CREATE_COMMUNITY, params,
            {"community": community, "authority": authority.public_key},
        )
        result = await self.orchestrator.provision(
            ProvisioningStrategy.ATOMIC, authority,
            [Provision(community, COMMUNITY_SPACE, self.program_id)],
            [instruction],
        )
        return community, result.receipt

    async def update_community(self, authority: Signer, community: PublicKey,
                               params: CommunityParams) -> SubmissionReceipt:
        instruction = self.orchestrator.instruction(
            InstructionKind.UPDATE_COMMUNITY, params,
            {"community": community, "authority": authority.public_key},
        )
        return await self.orchestrator.run(authority, [instruction])

    async def suspend_community(self, authority: Signer, community: PublicKey) -> SubmissionReceipt:
        instruction = self.orchestrator.instruction(
            InstructionKind.SUSPEND_COMMUNITY, None,
            {"community": community, "authority": authority.public_key},
        )
        return await self.orchestrator.run(authority, [instruction])

    async def get_community(self, community: PublicKey) -> bytes:
        return await self._read(community, AccountKind.COMMUNITY)

    async def list_user_communities(self, owner: PublicKey) -> List[Tuple[PublicKey, bytes]]:
        """Communities whose authority is owner."""
        return await self._list(AccountKind.COMMUNITY, parent=owner)

    async def list_communities(self) -> List[Tuple[PublicKey, bytes]]:
        return await self._list(AccountKind.COMMUNITY)
