# miner_backend/core/solution.py
from dataclasses import dataclass
from typing import Any, Dict

from miner_backend.utils.config import U64_MAX
from miner_backend.utils.crypto_hash import Hasher, keccak256
from miner_backend.utils.digest import digest_le, from_hex, nonce_to_le_bytes


def candidate_digest(challenge: bytes, identity: bytes, nonce: int, hasher: Hasher = keccak256) -> bytes:
    """Hash(challenge || identity || nonce_le)."""
    return hasher(challenge + identity + nonce_to_le_bytes(nonce))


@dataclass(frozen=True)
class Solution:
    """
    First candidate of a round whose digest is <= the round difficulty.
    Handed once to the instruction builder and then dropped.
    """

    digest: bytes
    nonce: int

    def __post_init__(self) -> None:
        if not 0 <= self.nonce <= U64_MAX:
            raise ValueError(f"nonce out of u64 range: {self.nonce}")

    def is_valid(self, difficulty: bytes) -> bool:
        return digest_le(self.digest, difficulty)

    def verify(self, challenge: bytes, identity: bytes, difficulty: bytes, hasher: Hasher = keccak256) -> bool:
        """Recompute the digest from its preimage and check it against ``difficulty``."""
        return (
            candidate_digest(challenge, identity, self.nonce, hasher) == self.digest
            and self.is_valid(difficulty)
        )

    def summary(self) -> str:
        return f"{self.digest.hex()} (nonce {self.nonce})"

    def to_json(self) -> Dict[str, Any]:
        return {"digest": self.digest.hex(), "nonce": self.nonce}

    @staticmethod
    def from_json(data: Dict[str, Any]) -> "Solution":
        return Solution(digest=from_hex(data["digest"], size=0), nonce=int(data["nonce"]))
