"""
Signing, Submission and Confirmation

Each transaction moves through a small state machine:

    BUILT -> SIGNED -> SUBMITTED -> CONFIRMED | REJECTED | TIMED_OUT

A transaction refused at send time goes SIGNED -> REJECTED. Nothing moves
backwards; a stale blockhash means building a new transaction, not
rewinding this one.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..errors import Rejected, RemoteUnavailable, StaleFreshnessToken, TimedOut
from .assembler import PreparedTransaction
from .transactions import Transaction

logger = logging.getLogger(__name__)


class SubmissionState(Enum):
    BUILT = "built"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"


_TRANSITIONS = {
    SubmissionState.BUILT: {SubmissionState.SIGNED},
    SubmissionState.SIGNED: {SubmissionState.SUBMITTED, SubmissionState.REJECTED},
    SubmissionState.SUBMITTED: {SubmissionState.CONFIRMED, SubmissionState.REJECTED, SubmissionState.TIMED_OUT},
}


@dataclass(frozen=True)
class SubmissionReceipt:
    """Outcome of one submitted transaction."""
    signature: str
    status: str                 # "confirmed" or "failed"
    slot: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "confirmed"


@dataclass
class Submission:
    """Tracks one prepared transaction through its lifecycle."""
    prepared: PreparedTransaction
    state: SubmissionState = SubmissionState.BUILT
    transaction: Optional[Transaction] = None
    receipt: Optional[SubmissionReceipt] = None
    history: List[SubmissionState] = field(default_factory=lambda: [SubmissionState.BUILT])

    def advance(self, state: SubmissionState) -> None:
        if state not in _TRANSITIONS.get(self.state, ()):
            raise ValueError(f"Illegal submission transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @property
    def signature(self) -> Optional[str]:
        return self.transaction.signature if self.transaction else None

    @property
    def finished(self) -> bool:
        return self.state in (SubmissionState.CONFIRMED, SubmissionState.REJECTED, SubmissionState.TIMED_OUT)


class SubmissionClient:
    """Signs, sends and waits for confirmation at the configured commitment."""

    def __init__(self, endpoint, commitment: str = "confirmed",
                 confirm_timeout: float = 30.0, poll_interval: float = 0.5):
        self.endpoint = endpoint
        self.commitment = commitment
        self.confirm_timeout = confirm_timeout
        self.poll_interval = poll_interval

    def sign(self, submission: Submission) -> Transaction:
        """Collect every required signature. A missing signer raises ValueError."""
        transaction = submission.prepared.sign()
        submission.transaction = transaction
        submission.advance(SubmissionState.SIGNED)
        return transaction

    async def submit(self, submission: Submission) -> str:
        """Send signed bytes. The executor's refusal marks the submission REJECTED."""
        raw = submission.transaction.serialize()
        try:
            signature = await self.endpoint.send_transaction(raw)
        except (Rejected, StaleFreshnessToken) as e:
            submission.advance(SubmissionState.REJECTED)
            if isinstance(e, Rejected):
                submission.receipt = SubmissionReceipt(submission.signature, "failed", error=str(e))
                e.receipt = submission.receipt
            raise
        submission.advance(SubmissionState.SUBMITTED)
        logger.info("Submitted %s", signature)
        return signature

    async def confirm(self, submission: Submission) -> SubmissionReceipt:
        """
        Poll until the commitment is reached, the transaction fails, or
        confirm_timeout elapses.

        Raises:
            Rejected: executed with an error; carries the failed receipt
            TimedOut: no confirmation in time; carries the signature
        """
        signature = submission.signature
        try:
            status = await asyncio.wait_for(self._poll(signature), self.confirm_timeout)
        except asyncio.TimeoutError:
            submission.advance(SubmissionState.TIMED_OUT)
            logger.warning("No %s confirmation for %s after %.1fs", self.commitment, signature, self.confirm_timeout)
            raise TimedOut(f"Transaction {signature} not {self.commitment} within {self.confirm_timeout}s",
                           signature=signature) from None

        if status.failed:
            receipt = SubmissionReceipt(signature, "failed", status.slot, status.error)
            submission.receipt = receipt
            submission.advance(SubmissionState.REJECTED)
            raise Rejected(f"Transaction {signature} failed: {status.error}", receipt=receipt)

        receipt = SubmissionReceipt(signature, "confirmed", status.slot)
        submission.receipt = receipt
        submission.advance(SubmissionState.CONFIRMED)
        logger.info("Confirmed %s in slot %s", signature, status.slot)
        return receipt

    async def send_and_confirm(self, prepared: PreparedTransaction) -> SubmissionReceipt:
        submission = Submission(prepared)
        self.sign(submission)
        await self.submit(submission)
        return await self.confirm(submission)

    async def _poll(self, signature: str):
        while True:
            try:
                status = await self.endpoint.confirm_transaction(signature, self.commitment)
            except RemoteUnavailable as e:
                logger.warning("Status check for %s failed: %s", signature, e)
            else:
                if status.failed or status.status.satisfies(self.commitment):
                    return status
            await asyncio.sleep(self.poll_interval)
