"""
Orchestrator

Composes the pipeline for one program on one endpoint:

    AddressDeriver -> ReserveCalculator -> InstructionBuilder
        -> TransactionAssembler -> SubmissionClient

and owns the two recoveries the pipeline allows itself: rebuilding a
transaction whose blockhash went stale, and reporting (then resuming) a
two-step provisioning that stopped between funding and initialization.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Sequence, Tuple

from .config import ClientConfig
from .core.assembler import PreparedTransaction, Provision, ProvisioningStrategy, TransactionAssembler
from .core.keys import PublicKey, Signer
from .core.pda import AddressDeriver, Seed
from .core.reader import AccountReader
from .core.rent import ReserveCalculator
from .core.retry import RetryPolicy
from .core.submission import SubmissionClient, SubmissionReceipt
from .core.transactions import Instruction
from .errors import PartiallyProvisioned, StaleFreshnessToken, UnityVaultError
from .programs.instructions import InstructionBuilder
from .programs.serializer import InstructionKind
from .rpc.endpoint import RpcEndpoint
from .rpc.http import HttpRpcEndpoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisioningResult:
    """Provisioned addresses and one receipt per submitted step."""
    addresses: Tuple[PublicKey, ...]
    receipts: Tuple[SubmissionReceipt, ...]

    @property
    def receipt(self) -> SubmissionReceipt:
        """Receipt of the step that ran the business instructions."""
        return self.receipts[-1]


class Orchestrator:
    """
    One program, one endpoint, no global state.

    Every domain client is a thin layer over an instance of this class.
    """

    def __init__(self, endpoint: RpcEndpoint, program_id: PublicKey, commitment: str = "confirmed",
                 confirm_timeout: float = 30.0, poll_interval: float = 0.5,
                 retry: RetryPolicy = RetryPolicy()):
        self.endpoint = endpoint
        self.program_id = program_id
        self.retry = retry

        self.deriver = AddressDeriver(program_id)
        self.reserve = ReserveCalculator(endpoint, retry)
        self.builder = InstructionBuilder(program_id)
        self.assembler = TransactionAssembler(endpoint, self.reserve, commitment, retry)
        self.submitter = SubmissionClient(endpoint, commitment, confirm_timeout, poll_interval)
        self.reader = AccountReader(endpoint, commitment, retry)

    @classmethod
    def from_config(cls, config: ClientConfig, endpoint: Optional[RpcEndpoint] = None) -> 'Orchestrator':
        """Build from a config, opening an HTTP endpoint unless one is given."""
        if endpoint is None:
            endpoint = HttpRpcEndpoint(config.rpc_url, timeout=config.request_timeout)
        return cls(
            endpoint,
            config.program_id,
            commitment=config.commitment,
            confirm_timeout=config.confirm_timeout,
            poll_interval=config.poll_interval,
            retry=config.retry,
        )

    async def aclose(self) -> None:
        await self.endpoint.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    def derive(self, *seeds: Seed) -> Tuple[PublicKey, int]:
        """Derived address and bump for seeds under this program."""
        return self.deriver.derive(*seeds)

    def instruction(self, kind: InstructionKind, params: Any, accounts: Mapping[str, PublicKey]) -> Instruction:
        return self.builder.build(kind, params, accounts)

    async def run(self, payer: Signer, instructions: Sequence[Instruction],
                  signers: Iterable[Signer] = ()) -> SubmissionReceipt:
        """
        Assemble, sign, submit and confirm one transaction.

        A stale blockhash triggers a rebuild against a fresh one, up to
        retry.max_rebuilds times.
        """
        signers = tuple(signers)

        async def rebuild() -> PreparedTransaction:
            return await self.assembler.prepare(payer, instructions, signers)

        return await self._submit(await rebuild(), rebuild)

    async def provision(self, strategy: ProvisioningStrategy, payer: Signer,
                        provisions: Sequence[Provision], instructions: Sequence[Instruction],
                        signers: Iterable[Signer] = ()) -> ProvisioningResult:
        """
        Create provisions and run instructions under strategy.

        Raises:
            PartiallyProvisioned: FUND_THEN_INIT funding confirmed but the
                initialization step did not; carries the funded addresses,
                the funding receipt and the underlying error
        """
        signers = tuple(signers)
        plan = await self.assembler.plan(strategy, payer, provisions, instructions, signers)

        async def replan_first() -> PreparedTransaction:
            # Both steps move to the new blockhash together
            nonlocal plan
            plan = await self.assembler.plan(strategy, payer, provisions, instructions, signers)
            return plan.steps[0]

        if strategy is ProvisioningStrategy.ATOMIC:
            receipt = await self._submit(plan.steps[0], replan_first)
            logger.info("Provisioned %d account(s) atomically", len(plan.addresses))
            return ProvisioningResult(plan.addresses, (receipt,))

        # Step 1 failing propagates as is; step 2 is never attempted
        funding_receipt = await self._submit(plan.funding, replan_first)
        logger.info("Funded %d account(s), initializing", len(plan.addresses))

        async def reprepare_init() -> PreparedTransaction:
            return await self.assembler.prepare(payer, instructions, signers)

        try:
            init_receipt = await self._submit(plan.initialization, reprepare_init)
        except UnityVaultError as e:
            logger.warning("Initialization failed after funding %s: %s",
                           ", ".join(str(a) for a in plan.addresses), e)
            raise PartiallyProvisioned(plan.addresses, funding_receipt=funding_receipt, cause=e) from e

        return ProvisioningResult(plan.addresses, (funding_receipt, init_receipt))

    async def initialize_only(self, payer: Signer, instructions: Sequence[Instruction],
                              signers: Iterable[Signer] = ()) -> SubmissionReceipt:
        """Re-issue the initialization step of a FUND_THEN_INIT provisioning."""
        logger.info("Resuming initialization with a fresh blockhash")
        return await self.run(payer, instructions, signers)

    async def _submit(self, prepared: PreparedTransaction,
                      rebuild: Callable[[], Awaitable[PreparedTransaction]]) -> SubmissionReceipt:
        rebuilds = 0
        while True:
            try:
                return await self.submitter.send_and_confirm(prepared)
            except StaleFreshnessToken:
                if rebuilds >= self.retry.max_rebuilds:
                    raise
                rebuilds += 1
                logger.warning("Blockhash expired, rebuilding (%d/%d)", rebuilds, self.retry.max_rebuilds)
                prepared = await rebuild()
