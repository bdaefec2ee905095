"""
Tokenization Client

Creating a token touches three accounts: the token info record at
("token_info", creator, mint), plus a fresh mint and a fresh token account
owned by the token program. All three are funded in step one (the two
keyed accounts co-sign their creation), and CreateToken runs in step two.
"""

from typing import List, Tuple

from ..core.accounts import AccountKind
from ..core.assembler import Provision, ProvisioningStrategy
from ..core.keys import PublicKey, Signer
from ..core.submission import SubmissionReceipt
from ..programs.params import AmountParams, TokenParams
from ..programs.serializer import InstructionKind
from ..programs.system import MINT_SIZE, TOKEN_ACCOUNT_SIZE, TOKEN_PROGRAM_ID
from .base import DEFAULT_ACCOUNT_SPACE, DomainClient

TOKEN_INFO_SPACE = DEFAULT_ACCOUNT_SPACE


class TokenizationClient(DomainClient):

    def token_info_address(self, creator: PublicKey, mint: PublicKey) -> PublicKey:
        return self.orchestrator.derive("token_info", creator, mint)[0]

    def _create_token_instruction(self, creator: PublicKey, mint: PublicKey,
                                  token_account: PublicKey, params: TokenParams):
        token_info = self.token_info_address(creator, mint)
        instruction = self.orchestrator.instruction(
            InstructionKind.CREATE_TOKEN, params,
            {"token_info": token_info, "mint": mint, "token_account": token_account, "creator": creator},
        )
        return token_info, instruction

    async def create_token(self, creator: Signer, mint: Signer, token_account: Signer,
                           params: TokenParams) -> Tuple[PublicKey, SubmissionReceipt]:
        """
        Fund token info, mint and token account, then run CreateToken.

        mint and token_account are freshly generated keypairs.

        Raises:
            PartiallyProvisioned: everything is funded but CreateToken
                failed; call resume_create_token with the same public keys
        """
        token_info, instruction = self._create_token_instruction(
            creator.public_key, mint.public_key, token_account.public_key, params)
        result = await self.orchestrator.provision(
            ProvisioningStrategy.FUND_THEN_INIT, creator,
            [
                Provision(token_info, TOKEN_INFO_SPACE, self.program_id),
                Provision(mint.public_key, MINT_SIZE, TOKEN_PROGRAM_ID, signer=mint),
                Provision(token_account.public_key, TOKEN_ACCOUNT_SIZE, TOKEN_PROGRAM_ID, signer=token_account),
            ],
            [instruction],
        )
        return token_info, result.receipt

    async def resume_create_token(self, creator: Signer, mint: PublicKey, token_account: PublicKey,
                                  params: TokenParams) -> Tuple[PublicKey, SubmissionReceipt]:
        """Run only CreateToken against accounts funded by an earlier attempt."""
        token_info, instruction = self._create_token_instruction(creator.public_key, mint, token_account, params)
        receipt = await self.orchestrator.initialize_only(creator, [instruction])
        return token_info, receipt

    async def transfer_tokens(self, owner: Signer, from_token_account: PublicKey,
                              to_token_account: PublicKey, recipient: PublicKey,
                              amount: int) -> SubmissionReceipt:
        instruction = self.orchestrator.instruction(
            InstructionKind.TRANSFER_TOKENS, AmountParams(amount),
            {
                "from_token_account": from_token_account,
                "to_token_account": to_token_account,
                "owner": owner.public_key,
                "recipient": recipient,
            },
        )
        return await self.orchestrator.run(owner, [instruction])

    async def burn_tokens(self, owner: Signer, token_account: PublicKey, amount: int) -> SubmissionReceipt:
        instruction = self.orchestrator.instruction(
            InstructionKind.BURN_TOKENS, AmountParams(amount),
            {"token_account": token_account, "owner": owner.public_key},
        )
        return await self.orchestrator.run(owner, [instruction])

    async def get_token_info(self, token_info: PublicKey) -> bytes:
        return await self._read(token_info, AccountKind.TOKEN_INFO)

    async def list_tokens(self, creator: PublicKey) -> List[Tuple[PublicKey, bytes]]:
        return await self._list(AccountKind.TOKEN_INFO, parent=creator)
