"""
Transaction Assembly

Turns instructions into signable transactions. The interesting part is
provisioning: new accounts need a rent-exempt balance before the program
can write to them, and there are two ways to get there.

ATOMIC: one transaction creates every account and runs the business
instructions. Either all of it lands or none of it does.

FUND_THEN_INIT: two transactions built against the same blockhash. The
first funds the addresses, the second runs the business instructions.
Between them the ledger holds funded accounts the program has not
initialized yet; the orchestrator surfaces that state when step two fails.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..programs.system import create_account, transfer
from .keys import PublicKey, Signer
from .rent import ReserveCalculator, ReserveQuote
from .retry import RetryPolicy, retry_remote
from .transactions import Instruction, Message, Transaction, TransactionBuilder, sign_transaction

logger = logging.getLogger(__name__)


class ProvisioningStrategy(Enum):
    ATOMIC = "atomic"
    FUND_THEN_INIT = "fund_then_init"


@dataclass(frozen=True)
class Provision:
    """
    An account that must exist, rent-exempt, before the business instructions run.

    signer is set for a freshly generated keypair account and left None for
    a derived address, which has no private key.
    """
    address: PublicKey
    space: int
    owner: PublicKey
    signer: Optional[Signer] = None

    def __post_init__(self):
        if self.space < 0:
            raise ValueError(f"Account size cannot be negative: {self.space}")
        if self.signer is not None and self.signer.public_key != self.address:
            raise ValueError(f"Signer {self.signer.public_key} does not match provision address {self.address}")


@dataclass(frozen=True)
class PreparedTransaction:
    """A compiled message plus everyone who has to sign it."""
    message: Message
    signers: Tuple[Signer, ...]
    last_valid_block_height: int

    @property
    def instructions(self) -> List[Instruction]:
        return self.message.decompile()

    def sign(self) -> Transaction:
        return sign_transaction(self.message, self.signers)


@dataclass(frozen=True)
class ProvisioningPlan:
    """
    The transactions a provisioning operation submits, in order.

    ATOMIC plans have one step, FUND_THEN_INIT plans have two.
    """
    strategy: ProvisioningStrategy
    steps: Tuple[PreparedTransaction, ...]
    addresses: Tuple[PublicKey, ...]
    quotes: Tuple[ReserveQuote, ...]

    @property
    def funding(self) -> PreparedTransaction:
        if self.strategy is not ProvisioningStrategy.FUND_THEN_INIT:
            raise ValueError("Only FUND_THEN_INIT plans have a separate funding step")
        return self.steps[0]

    @property
    def initialization(self) -> PreparedTransaction:
        return self.steps[-1]


def _unique_signers(signers: Iterable[Signer]) -> Tuple[Signer, ...]:
    """Deduplicate by public key, keeping first occurrence."""
    seen: Dict[PublicKey, Signer] = {}
    for signer in signers:
        seen.setdefault(signer.public_key, signer)
    return tuple(seen.values())


class TransactionAssembler:
    """Builds PreparedTransactions. Fetches one blockhash per assembly."""

    def __init__(self, endpoint, reserve: ReserveCalculator,
                 commitment: str = "confirmed", retry: RetryPolicy = RetryPolicy()):
        self.endpoint = endpoint
        self.reserve = reserve
        self.commitment = commitment
        self.retry = retry

    async def fetch_token(self):
        return await retry_remote(
            self.retry,
            lambda: self.endpoint.get_latest_blockhash(self.commitment),
            "getLatestBlockhash",
        )

    def assemble(self, payer: Signer, instructions: Sequence[Instruction],
                 signers: Iterable[Signer], token) -> PreparedTransaction:
        """Compile against an already fetched token. No I/O."""
        message = (TransactionBuilder(payer.public_key, token.blockhash)
                   .add_instructions(instructions)
                   .build())
        return PreparedTransaction(
            message=message,
            signers=_unique_signers([payer, *signers]),
            last_valid_block_height=token.last_valid_block_height,
        )

    async def prepare(self, payer: Signer, instructions: Sequence[Instruction],
                      signers: Iterable[Signer] = ()) -> PreparedTransaction:
        """Fetch a fresh token and assemble a single transaction."""
        if not instructions:
            raise ValueError("Transaction must contain at least one instruction")
        token = await self.fetch_token()
        return self.assemble(payer, instructions, signers, token)

    async def plan(self, strategy: ProvisioningStrategy, payer: Signer,
                   provisions: Sequence[Provision], instructions: Sequence[Instruction],
                   signers: Iterable[Signer] = ()) -> ProvisioningPlan:
        """
        Quote every provision and lay out the transactions for strategy.

        Raises:
            ValueError: no business instructions, or FUND_THEN_INIT with
                nothing to fund
        """
        if not instructions:
            raise ValueError("Transaction must contain at least one instruction")
        if strategy is ProvisioningStrategy.FUND_THEN_INIT and not provisions:
            raise ValueError("FUND_THEN_INIT needs at least one provision")

        signers = tuple(signers)
        quotes = await asyncio.gather(*(self.reserve.minimum_balance(p.space) for p in provisions))
        token = await self.fetch_token()

        funding = [self._funding_instruction(strategy, payer, p, q) for p, q in zip(provisions, quotes)]
        provision_signers = [p.signer for p in provisions if p.signer is not None]

        if strategy is ProvisioningStrategy.ATOMIC:
            steps = (self.assemble(payer, [*funding, *instructions], [*provision_signers, *signers], token),)
        else:
            steps = (
                self.assemble(payer, funding, provision_signers, token),
                self.assemble(payer, instructions, signers, token),
            )

        logger.debug("Planned %s: %d provision(s), %d step(s)", strategy.value, len(provisions), len(steps))
        return ProvisioningPlan(
            strategy=strategy,
            steps=steps,
            addresses=tuple(p.address for p in provisions),
            quotes=tuple(quotes),
        )

    @staticmethod
    def _funding_instruction(strategy: ProvisioningStrategy, payer: Signer,
                             provision: Provision, quote: ReserveQuote) -> Instruction:
        keyed = provision.signer is not None
        if strategy is ProvisioningStrategy.FUND_THEN_INIT and not keyed:
            # The program allocates and assigns the funded address itself
            return transfer(payer.public_key, provision.address, quote.lamports)
        return create_account(payer.public_key, provision.address, quote.lamports,
                              provision.space, provision.owner, new_account_signs=keyed)
