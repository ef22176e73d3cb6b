# miner_backend/core/send_and_confirm.py
"""
Submission pipeline: balance check -> simulate -> send -> confirm.

    BUILT --simulate--> SIMULATED --send--> SENT --confirm--> CONFIRMED
      |                    |                  |
      +--------------------+------------------+-------------> FAILED

Simulation is optional (``dynamic_cus``) and confirmation can be skipped
(``skip_confirm``). Each network stage goes through ``retry`` with its own
bound; exhausting a bound fails the submission with the matching error.
``submit`` turns every failure into a SubmissionOutcome so the mining loop
can report it and move on.
"""
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from miner_backend.client.rpc_client import FinalityLevel, LedgerTransport, SimulationResult
from miner_backend.core.errors import (
    ConfirmationTimedOut,
    InsufficientBalance,
    MinerError,
    SendFailed,
    SimulationFailed,
    TransportError,
)
from miner_backend.core.retry import RetriesExhausted, retry
from miner_backend.utils.config import (
    CONFIRM_DELAY_S,
    CONFIRM_RETRIES,
    CU_LIMIT_MARGIN,
    GATEWAY_DELAY_S,
    GATEWAY_RETRIES,
    SIMULATION_DELAY_S,
    SIMULATION_RETRIES,
)
from miner_backend.wallet.transaction import Instruction, Transaction, set_compute_unit_limit
from miner_backend.wallet.wallet import Wallet


class SubmissionState(Enum):
    BUILT = "built"
    SIMULATED = "simulated"
    SENT = "sent"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class SubmissionStatus(Enum):
    CONFIRMED = "confirmed"
    SENT = "sent"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    SIMULATION_FAILED = "simulation_failed"
    SEND_FAILED = "send_failed"
    CONFIRMATION_TIMED_OUT = "confirmation_timed_out"
    TRANSPORT_ERROR = "transport_error"


_STATUS_FOR_ERROR = {
    InsufficientBalance: SubmissionStatus.INSUFFICIENT_BALANCE,
    SimulationFailed: SubmissionStatus.SIMULATION_FAILED,
    SendFailed: SubmissionStatus.SEND_FAILED,
    ConfirmationTimedOut: SubmissionStatus.CONFIRMATION_TIMED_OUT,
    TransportError: SubmissionStatus.TRANSPORT_ERROR,
}


@dataclass(frozen=True)
class SubmissionOutcome:
    status: SubmissionStatus
    signature: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (SubmissionStatus.CONFIRMED, SubmissionStatus.SENT)

    def __str__(self):
        if self.ok:
            return f"{self.status.value}: {self.signature}"
        return f"{self.status.value}: {self.error}"


class Submission:
    """One transaction travelling through the pipeline."""

    def __init__(self, transaction: Transaction):
        self.transaction = transaction
        self.state = SubmissionState.BUILT
        self.signature: Optional[str] = None
        self.attempts = {"simulate": 0, "send": 0, "confirm": 0}

    def advance(self, state: SubmissionState) -> None:
        print(f"[send] {self.state.value} -> {state.value}")
        self.state = state


class SendAndConfirm:
    def __init__(
        self,
        transport: LedgerTransport,
        signer: Wallet,
        *,
        simulation_retries: int = SIMULATION_RETRIES,
        gateway_retries: int = GATEWAY_RETRIES,
        confirm_retries: int = CONFIRM_RETRIES,
        simulation_delay: float = SIMULATION_DELAY_S,
        gateway_delay: float = GATEWAY_DELAY_S,
        confirm_delay: float = CONFIRM_DELAY_S,
        cu_margin: int = CU_LIMIT_MARGIN,
        commitment: FinalityLevel = FinalityLevel.CONFIRMED,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport
        self.signer = signer
        self.simulation_retries = simulation_retries
        self.gateway_retries = gateway_retries
        self.confirm_retries = confirm_retries
        self.simulation_delay = simulation_delay
        self.gateway_delay = gateway_delay
        self.confirm_delay = confirm_delay
        self.cu_margin = cu_margin
        self.commitment = commitment
        self.sleep = sleep

    # ---------- entry points ----------
    def send_and_confirm(self, ixs: Sequence[Instruction], dynamic_cus: bool = True,
                         skip_confirm: bool = False) -> str:
        """Run the whole pipeline; return the signature or raise a MinerError."""
        submission = Submission(Transaction.new_with_payer(ixs, self.signer))
        self.check_balance()
        if dynamic_cus:
            self.simulate(submission)
        self.send(submission)
        if not skip_confirm:
            self.confirm(submission)
        return submission.signature

    def submit(self, ixs: Sequence[Instruction], dynamic_cus: bool = True,
               skip_confirm: bool = False) -> SubmissionOutcome:
        """Like send_and_confirm, but every failure comes back as an outcome."""
        try:
            signature = self.send_and_confirm(ixs, dynamic_cus=dynamic_cus, skip_confirm=skip_confirm)
        except MinerError as e:
            status = _STATUS_FOR_ERROR.get(type(e), SubmissionStatus.TRANSPORT_ERROR)
            print(f"[send] failed ({status.value}): {e}")
            return SubmissionOutcome(status, signature=getattr(e, "signature", None), error=str(e))
        status = SubmissionStatus.SENT if skip_confirm else SubmissionStatus.CONFIRMED
        return SubmissionOutcome(status, signature=signature)

    # ---------- stages ----------
    def check_balance(self) -> int:
        balance = self.transport.get_balance(self.signer.pubkey)
        if balance <= 0:
            raise InsufficientBalance("Insufficient SOL balance")
        return balance

    def simulate(self, submission: Submission) -> SimulationResult:
        tx = submission.transaction
        print("[send] Simulating transaction...")

        def attempt() -> SimulationResult:
            submission.attempts["simulate"] += 1
            return self.transport.simulate(tx)

        def on_failure(n, error, value):
            reason = error if error is not None else value.err
            print(f"[send] Simulation error ({n}/{self.simulation_retries}): {reason}")

        try:
            result = retry(
                attempt,
                max_attempts=self.simulation_retries,
                backoff=self.simulation_delay,
                is_success=lambda r: r.err is None,
                on_failure=on_failure,
                sleep=self.sleep,
            )
        except RetriesExhausted as e:
            submission.advance(SubmissionState.FAILED)
            raise SimulationFailed("Simulation repeatedly failed") from e

        if result.units_consumed is not None:
            limit = result.units_consumed + self.cu_margin
            tx.insert_instruction(0, set_compute_unit_limit(limit))
            print(f"[send] Simulation used {result.units_consumed} CUs "
                  f"(attempt {submission.attempts['simulate']}); limit set to {limit}")
        else:
            print("[send] Simulation reported no CU usage; sending without a limit")
        submission.advance(SubmissionState.SIMULATED)
        return result

    def send(self, submission: Submission) -> str:
        tx = submission.transaction

        def attempt() -> str:
            submission.attempts["send"] += 1
            reference_point = self.transport.get_latest_reference_point()
            tx.sign(self.signer, reference_point.blockhash)
            return self.transport.send(tx, reference_point)

        def on_failure(n, error, value):
            print(f"[send] Error sending transaction ({n}/{self.gateway_retries}): {error}")

        try:
            signature = retry(
                attempt,
                max_attempts=self.gateway_retries,
                backoff=self.gateway_delay,
                on_failure=on_failure,
                sleep=self.sleep,
            )
        except RetriesExhausted as e:
            submission.advance(SubmissionState.FAILED)
            raise SendFailed("Exceeded maximum retries for sending transaction") from e

        print(f"[send] Transaction sent with signature: {signature} (attempt {submission.attempts['send']})")
        submission.signature = signature
        submission.advance(SubmissionState.SENT)
        return signature

    def confirm(self, submission: Submission) -> FinalityLevel:
        signature = submission.signature

        def attempt() -> Optional[FinalityLevel]:
            submission.attempts["confirm"] += 1
            return self.transport.get_status(signature)

        def on_failure(n, error, value):
            if error is not None:
                print(f"[send] Status check failed ({n}/{self.confirm_retries}): {error}")
            elif value is None:
                print(f"[send] Transaction status not available ({n}/{self.confirm_retries})")
            else:
                print(f"[send] Transaction {value.name.lower()} ({n}/{self.confirm_retries})")

        try:
            level = retry(
                attempt,
                max_attempts=self.confirm_retries,
                backoff=self.confirm_delay,
                is_success=lambda s: s is not None and s >= self.commitment,
                on_failure=on_failure,
                delay_first=True,
                sleep=self.sleep,
            )
        except RetriesExhausted as e:
            submission.advance(SubmissionState.FAILED)
            raise ConfirmationTimedOut(
                "Transaction confirmation failed after repeated attempts", signature=signature
            ) from e

        print(f"[send] Transaction confirmed after {submission.attempts['confirm']} poll(s)!")
        submission.advance(SubmissionState.CONFIRMED)
        return level
