"""
Governance Client

Proposals are created atomically at ("proposal", proposer, title). A vote
record lives at ("vote", proposal, voter); the program allocates it while
processing the vote, which also makes a second vote by the same voter fail.
"""

from collections import Counter
from typing import Dict, List, Optional, Tuple

from ..core.accounts import HEADER_SIZE, AccountKind
from ..core.assembler import Provision, ProvisioningStrategy
from ..core.keys import PublicKey, Signer
from ..core.submission import SubmissionReceipt
from ..programs.params import ProposalParams, VoteParams, VoteType
from ..programs.serializer import InstructionKind
from .base import DEFAULT_ACCOUNT_SPACE, DomainClient

PROPOSAL_SPACE = DEFAULT_ACCOUNT_SPACE

# Vote records: header, then the Borsh VoteType variant index
_VOTE_TYPES = list(VoteType)


class GovernanceClient(DomainClient):

    def proposal_address(self, proposer: PublicKey, title: str) -> PublicKey:
        return self.orchestrator.derive("proposal", proposer, title)[0]

    def vote_address(self, proposal: PublicKey, voter: PublicKey) -> PublicKey:
        return self.orchestrator.derive("vote", proposal, voter)[0]

    async def create_proposal(self, proposer: Signer,
                              params: ProposalParams) -> Tuple[PublicKey, SubmissionReceipt]:
        proposal = self.proposal_address(proposer.public_key, params.title)
        instruction = self.orchestrator.instruction(
            InstructionKind.CREATE_PROPOSAL, params,
            {"proposal": proposal, "proposer": proposer.public_key},
        )
        result = await self.orchestrator.provision(
            ProvisioningStrategy.ATOMIC, proposer,
            [Provision(proposal, PROPOSAL_SPACE, self.program_id)],
            [instruction],
        )
        return proposal, result.receipt

    async def vote(self, voter: Signer, proposal: PublicKey,
                   vote_type: VoteType) -> Tuple[PublicKey, SubmissionReceipt]:
        """Cast a vote. Returns the vote record's address with the receipt."""
        vote = self.vote_address(proposal, voter.public_key)
        instruction = self.orchestrator.instruction(
            InstructionKind.VOTE_PROPOSAL, VoteParams(vote_type),
            {"proposal": proposal, "vote": vote, "voter": voter.public_key},
        )
        receipt = await self.orchestrator.run(voter, [instruction])
        return vote, receipt

    async def get_proposal(self, proposal: PublicKey) -> bytes:
        return await self._read(proposal, AccountKind.PROPOSAL)

    async def list_proposals(self, proposer: Optional[PublicKey] = None) -> List[Tuple[PublicKey, bytes]]:
        """All proposals, or only those created by proposer."""
        return await self._list(AccountKind.PROPOSAL, parent=proposer)

    async def get_votes(self, proposal: PublicKey) -> List[Tuple[PublicKey, bytes]]:
        return await self._list(AccountKind.VOTE, parent=proposal)

    async def get_voting_results(self, proposal: PublicKey) -> Dict[VoteType, int]:
        """
        Tally of the vote records cast on proposal.

        Reads every vote account whose header points at the proposal and
        counts the VoteType byte that follows the header.
        """
        tally = Counter({vote_type: 0 for vote_type in VoteType})
        for _, data in await self.get_votes(proposal):
            if len(data) > HEADER_SIZE and data[HEADER_SIZE] < len(_VOTE_TYPES):
                tally[_VOTE_TYPES[data[HEADER_SIZE]]] += 1
        return dict(tally)
