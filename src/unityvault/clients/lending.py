"""
Lending Client

A pool lives at ("lending_pool", authority, token_mint) and is set up in
two steps: fund the address, then initialize it. Loans live at
("loan", pool, borrower) and are created in one transaction.
"""

from typing import List, Tuple

from ..core.accounts import AccountKind
from ..core.assembler import Provision, ProvisioningStrategy
from ..core.keys import PublicKey, Signer
from ..core.submission import SubmissionReceipt
from ..programs.params import LendingPoolParams, LoanParams
from ..programs.serializer import InstructionKind
from .base import DEFAULT_ACCOUNT_SPACE, DomainClient

LENDING_POOL_SPACE = DEFAULT_ACCOUNT_SPACE
LOAN_SPACE = DEFAULT_ACCOUNT_SPACE


class LendingClient(DomainClient):

    def lending_pool_address(self, authority: PublicKey, token_mint: PublicKey) -> PublicKey:
        return self.orchestrator.derive("lending_pool", authority, token_mint)[0]

    def loan_address(self, lending_pool: PublicKey, borrower: PublicKey) -> PublicKey:
        return self.orchestrator.derive("loan", lending_pool, borrower)[0]

    def _init_pool_instruction(self, authority: PublicKey, token_mint: PublicKey,
                               token_vault: PublicKey, params: LendingPoolParams):
        pool = self.lending_pool_address(authority, token_mint)
        instruction = self.orchestrator.instruction(
            InstructionKind.INIT_LENDING_POOL, params,
            {"lending_pool": pool, "authority": authority, "token_mint": token_mint, "token_vault": token_vault},
        )
        return pool, instruction

    async def init_lending_pool(self, authority: Signer, token_mint: PublicKey, token_vault: PublicKey,
                                params: LendingPoolParams) -> Tuple[PublicKey, SubmissionReceipt]:
        """
        Fund the pool address, then initialize it.

        Raises:
            PartiallyProvisioned: the pool is funded but InitLendingPool
                failed; call resume_init_lending_pool with the same arguments
        """
        pool, instruction = self._init_pool_instruction(authority.public_key, token_mint, token_vault, params)
        result = await self.orchestrator.provision(
            ProvisioningStrategy.FUND_THEN_INIT, authority,
            [Provision(pool, LENDING_POOL_SPACE, self.program_id)],
            [instruction],
        )
        return pool, result.receipt

    async def resume_init_lending_pool(self, authority: Signer, token_mint: PublicKey, token_vault: PublicKey,
                                       params: LendingPoolParams) -> Tuple[PublicKey, SubmissionReceipt]:
        """Run only InitLendingPool against an already funded pool address."""
        pool, instruction = self._init_pool_instruction(authority.public_key, token_mint, token_vault, params)
        receipt = await self.orchestrator.initialize_only(authority, [instruction])
        return pool, receipt

    async def create_loan(self, borrower: Signer, lending_pool: PublicKey,
                          params: LoanParams) -> Tuple[PublicKey, SubmissionReceipt]:
        loan = self.loan_address(lending_pool, borrower.public_key)
        instruction = self.orchestrator.instruction(
            InstructionKind.CREATE_LOAN, params,
            {"loan": loan, "lending_pool": lending_pool, "borrower": borrower.public_key},
        )
        result = await self.orchestrator.provision(
            ProvisioningStrategy.ATOMIC, borrower,
            [Provision(loan, LOAN_SPACE, self.program_id)],
            [instruction],
        )
        return loan, result.receipt

    async def repay_loan(self, borrower: Signer, loan: PublicKey, lending_pool: PublicKey) -> SubmissionReceipt:
        instruction = self.orchestrator.instruction(
            InstructionKind.REPAY_LOAN, None,
            {"loan": loan, "lending_pool": lending_pool, "borrower": borrower.public_key},
        )
        return await self.orchestrator.run(borrower, [instruction])

    async def get_lending_pool(self, lending_pool: PublicKey) -> bytes:
        return await self._read(lending_pool, AccountKind.LENDING_POOL)

    async def get_loan(self, loan: PublicKey) -> bytes:
        return await self._read(loan, AccountKind.LOAN)

    async def list_loans(self, lending_pool: PublicKey) -> List[Tuple[PublicKey, bytes]]:
        return await self._list(AccountKind.LOAN, parent=lending_pool)
