# miner_backend/client/ledger_state.py
"""
Read side of the ledger: the miner's proof (current challenge, claimable
rewards), the treasury (current difficulty) and the token balance shown to
the user. Plain HTTP GETs returning JSON; digests are hex strings.
"""
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import requests

from miner_backend.core.errors import MinerError, TransportError
from miner_backend.utils.digest import from_hex


@dataclass(frozen=True)
class Proof:
    challenge: bytes
    claimable_rewards: int = 0
    total_hashes: int = 0


@dataclass(frozen=True)
class Treasury:
    difficulty: bytes
    reward_rate: int = 0


class LedgerStateClient:
    def __init__(self, base: str, session: Optional[requests.Session] = None, timeout=(5, 20)):
        self.base = base.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, path: str) -> requests.Response:
        try:
            return self.session.get(f"{self.base}{path}", timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"GET {path} failed: {e}") from e

    def _get_json(self, path: str, allow_missing: bool = False) -> Any:
        r = self._get(path)
        if allow_missing and r.status_code == 404:
            return None
        try:
            r.raise_for_status()
            return r.json()
        except requests.RequestException as e:
            raise TransportError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"GET {path} returned malformed JSON") from e

    def get_proof(self, pubkey: bytes) -> Optional[Proof]:
        """The miner's proof account, or None when it is not registered yet."""
        j = self._get_json(f"/proof/{bytes(pubkey).hex()}", allow_missing=True)
        if j is None:
            return None
        try:
            return Proof(
                challenge=from_hex(j["hash"]),
                claimable_rewards=int(j.get("claimable_rewards", 0)),
                total_hashes=int(j.get("total_hashes", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"malformed proof account: {j!r}") from e

    def get_treasury(self) -> Treasury:
        j = self._get_json("/treasury")
        try:
            return Treasury(difficulty=from_hex(j["difficulty"]), reward_rate=int(j.get("reward_rate", 0)))
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"malformed treasury account: {j!r}") from e

    def get_current_challenge_and_difficulty(self, pubkey: bytes,
                                             proof: Optional[Proof] = None) -> Tuple[bytes, bytes]:
        """Challenge from the miner's proof (fetched unless given) and the treasury difficulty."""
        if proof is None:
            proof = self.get_proof(pubkey)
        if proof is None:
            raise MinerError(f"no proof account for {bytes(pubkey).hex()}; register first")
        return proof.challenge, self.get_treasury().difficulty

    def get_display_balance(self, pubkey: bytes) -> str:
        """UI amount string of the miner's token account: "0.00" if none, "Err" on failure."""
        try:
            j = self._get_json(f"/token-balance/{bytes(pubkey).hex()}", allow_missing=True)
        except TransportError:
            return "Err"
        if j is None:
            return "0.00"
        try:
            return str(j["ui_amount_string"])
        except (KeyError, TypeError):
            return "Err"
