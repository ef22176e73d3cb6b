# miner_backend/app/miner.py
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from miner_backend.client.ledger_state import LedgerStateClient
from miner_backend.core.errors import MinerError
from miner_backend.core.search import search
from miner_backend.core.send_and_confirm import SendAndConfirm, SubmissionOutcome
from miner_backend.core.solution import Solution
from miner_backend.utils.config import STATE_RETRY_DELAY_S, TOKEN_DECIMALS
from miner_backend.utils.crypto_hash import Hasher, keccak256
from miner_backend.wallet import instructions
from miner_backend.wallet.wallet import Wallet


@dataclass
class RoundResult:
    displayed_balance: str
    claimable_amount: float
    solution: Solution
    outcome: SubmissionOutcome


class Miner:
    """
    Mining loop: read challenge + difficulty, search, build the mine
    instruction, push it through the submission pipeline, report, repeat.
    Rounds never overlap.
    """

    def __init__(
        self,
        wallet: Wallet,
        ledger_state: LedgerStateClient,
        pipeline: SendAndConfirm,
        threads: int = 1,
        backend: str = "thread",
        hasher: Hasher = keccak256,
        dynamic_cus: bool = True,
        skip_confirm: bool = False,
        tip_lamports: int = 0,
        progress: bool = True,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.wallet = wallet
        self.ledger_state = ledger_state
        self.pipeline = pipeline
        self.threads = int(threads)
        self.backend = backend
        self.hasher = hasher
        self.dynamic_cus = dynamic_cus
        self.skip_confirm = skip_confirm
        self.tip_lamports = int(tip_lamports)
        self.progress = progress
        self.rng = rng or random.Random()
        self.sleep = sleep

    def register(self) -> Optional[SubmissionOutcome]:
        """Open the proof account if the ledger has none for this wallet."""
        if self.ledger_state.get_proof(self.wallet.pubkey) is not None:
            return None
        print("[miner] Generating challenge...")
        outcome = self.pipeline.submit([instructions.register(self.wallet.pubkey)], dynamic_cus=False)
        print(f"[miner] register -> {outcome}")
        return outcome

    def mine_round(self) -> RoundResult:
        pubkey = self.wallet.pubkey
        balance = self.ledger_state.get_display_balance(pubkey)
        proof = self.ledger_state.get_proof(pubkey)
        if proof is None:
            self.register()
            raise MinerError("proof account not found")
        challenge, difficulty = self.ledger_state.get_current_challenge_and_difficulty(pubkey, proof=proof)
        rewards = proof.claimable_rewards / (10 ** TOKEN_DECIMALS)

        print(f"[miner] Balance: {balance} ORE, Claimable: {rewards} ORE, Mining for a valid hash...")
        started = time.monotonic()
        solution = search(
            challenge,
            difficulty,
            pubkey,
            self.threads,
            hasher=self.hasher,
            backend=self.backend,
            progress=self.progress,
        )
        print(f"[miner] found {solution.summary()} in {time.monotonic() - started:.1f}s")

        ixs = instructions.build_instructions(solution, pubkey, rng=self.rng, tip_lamports=self.tip_lamports)
        outcome = self.pipeline.submit(ixs, dynamic_cus=self.dynamic_cus, skip_confirm=self.skip_confirm)
        if outcome.ok:
            print(f"[miner] Transaction submitted successfully: {outcome.signature}")
        else:
            print(f"[miner] Failed to submit transaction: {outcome}")
        return RoundResult(balance, rewards, solution, outcome)

    def mine(self, rounds: Optional[int] = None) -> List[RoundResult]:
        """
        Run ``rounds`` rounds, or forever when None. Failed rounds are reported
        and skipped. Results are collected only for a bounded run.
        """
        results: List[RoundResult] = []
        done = 0
        try:
            self.register()
        except MinerError as e:
            print(f"[miner] register failed: {e}")
        try:
            while rounds is None or done < rounds:
                done += 1
                try:
                    result = self.mine_round()
                except MinerError as e:
                    print(f"[miner] round failed: {e}; retrying in {STATE_RETRY_DELAY_S}s")
                    self.sleep(STATE_RETRY_DELAY_S)
                    continue
                if rounds is not None:
                    results.append(result)
        except KeyboardInterrupt:
            print("\n[miner] interrupted by user, exiting gracefully.")
        return results
