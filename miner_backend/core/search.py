# miner_backend/core/search.py
"""
Parallel nonce search.

Worker ``i`` of ``n`` starts at ``i * (U64_MAX // n)`` and walks forward one
nonce at a time, hashing ``challenge || identity || nonce_le``. The first
worker whose digest is <= the difficulty offers it to the round's
SolutionSlot; the slot keeps only that first offer and raises the found flag.
Every ``check_interval`` iterations each worker looks at the flag and exits
once it is set, so a round wastes at most that many hashes per worker after
the winner.

Two backends share the same worker loop:
  - "thread":  threading.Thread workers and a SolutionSlot
  - "process": multiprocessing workers and a SharedSolutionSlot (real
               parallelism across cores, the default for the CLI)
"""
from __future__ import annotations

import multiprocessing
import sys
import threading
from typing import List, Optional

from miner_backend.core.solution import Solution
from miner_backend.utils.config import DIGEST_SIZE, FOUND_CHECK_INTERVAL, U64_MAX
from miner_backend.utils.crypto_hash import Hasher, keccak256

BACKENDS = ("thread", "process")


class SolutionSlot:
    """First-offer-wins result slot for the threads of one round."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._found = threading.Event()
        self._solution: Optional[Solution] = None

    def is_set(self) -> bool:
        return self._found.is_set()

    def offer(self, digest: bytes, nonce: int) -> bool:
        """Record (digest, nonce) unless a solution is already held. Returns True for the winner."""
        with self._lock:
            if self._solution is not None:
                return False
            self._solution = Solution(digest=bytes(digest), nonce=nonce)
            self._found.set()
            return True

    def get(self) -> Optional[Solution]:
        with self._lock:
            return self._solution


class SharedSolutionSlot(SolutionSlot):
    """SolutionSlot backed by multiprocessing primitives so worker processes can share it."""

    def __init__(self, ctx=None, digest_size: int = DIGEST_SIZE) -> None:
        ctx = ctx or multiprocessing.get_context()
        self._lock = ctx.Lock()
        self._found = ctx.Event()
        self._digest = ctx.RawArray("B", digest_size)
        self._nonce = ctx.RawValue("Q", 0)
        self._filled = ctx.RawValue("b", 0)

    def offer(self, digest: bytes, nonce: int) -> bool:
        if len(digest) != len(self._digest):
            raise ValueError(f"digest must be {len(self._digest)} bytes")
        with self._lock:
            if self._filled.value:
                return False
            self._digest[:] = list(digest)
            self._nonce.value = nonce
            self._filled.value = 1
            self._found.set()
            return True

    def get(self) -> Optional[Solution]:
        with self._lock:
            if not self._filled.value:
                return None
            return Solution(digest=bytes(self._digest), nonce=self._nonce.value)


def _print_progress(digest: bytes) -> None:
    sys.stdout.write(f"\r{digest.hex()}")
    sys.stdout.flush()


def _scan(worker_id: int, start: int, prefix: bytes, difficulty: bytes, slot: SolutionSlot,
          hasher: Hasher, check_interval: int, progress: bool) -> None:
    nonce = start
    iterations = 0
    while True:
        digest = hasher(prefix + nonce.to_bytes(8, "little"))
        if iterations % check_interval == 0:
            if slot.is_set():
                return
            if progress and worker_id == 0:
                _print_progress(digest)
        # lengths were checked by search(); bytes order == big-endian order
        if digest <= difficulty:
            if slot.offer(digest, nonce) and progress:
                _print_progress(digest)
            return
        nonce = (nonce + 1) & U64_MAX
        iterations += 1


def worker_offsets(worker_count: int) -> List[int]:
    """Disjoint start nonces, ``U64_MAX // worker_count`` apart."""
    if worker_count < 1:
        raise ValueError("worker_count must be >= 1")
    stride = U64_MAX // worker_count
    return [i * stride for i in range(worker_count)]


def search(challenge: bytes,
           difficulty: bytes,
           identity: bytes,
           worker_count: int,
           *,
           hasher: Hasher = keccak256,
           backend: str = "thread",
           check_interval: int = FOUND_CHECK_INTERVAL,
           progress: bool = False) -> Solution:
    """
    Find a nonce whose digest is <= ``difficulty`` using ``worker_count`` workers.

    Blocks until every worker of the round has exited, then returns the single
    recorded Solution. Runs until a solution exists; there is no timeout.
    """
    if backend not in BACKENDS:
        raise ValueError(f"backend must be one of {BACKENDS}, got {backend!r}")
    if check_interval < 1:
        raise ValueError("check_interval must be >= 1")
    offsets = worker_offsets(worker_count)

    difficulty = bytes(difficulty)
    prefix = bytes(challenge) + bytes(identity)
    probe = hasher(prefix + bytes(8))
    if len(probe) != len(difficulty):
        raise ValueError(f"difficulty is {len(difficulty)} bytes but the hash yields {len(probe)}")

    if backend == "thread":
        slot: SolutionSlot = SolutionSlot()
        workers = [
            threading.Thread(
                target=_scan,
                args=(i, start, prefix, difficulty, slot, hasher, check_interval, progress),
                name=f"search-{i}",
                daemon=True,
            )
            for i, start in enumerate(offsets)
        ]
    else:
        ctx = multiprocessing.get_context()
        slot = SharedSolutionSlot(ctx, digest_size=len(difficulty))
        workers = [
            ctx.Process(
                target=_scan,
                args=(i, start, prefix, difficulty, slot, hasher, check_interval, progress),
                name=f"search-{i}",
                daemon=True,
            )
            for i, start in enumerate(offsets)
        ]

    for w in workers:
        w.start()
    for w in workers:
        w.join()
    if progress:
        sys.stdout.write("\n")

    solution = slot.get()
    if solution is None:
        # only reachable when a worker process died before recording anything
        raise RuntimeError("search workers exited without recording a solution")
    return solution


def find_next_hash(challenge: bytes, difficulty: bytes, identity: bytes,
                   hasher: Hasher = keccak256, start: int = 0) -> Solution:
    """Sequential scan on the calling thread. Useful for debugging and tiny difficulties."""
    prefix = bytes(challenge) + bytes(identity)
    difficulty = bytes(difficulty)
    nonce = start
    while True:
        digest = hasher(prefix + nonce.to_bytes(8, "little"))
        if len(digest) != len(difficulty):
            raise ValueError(f"difficulty is {len(difficulty)} bytes but the hash yields {len(digest)}")
        if digest <= difficulty:
            return Solution(digest=digest, nonce=nonce)
        nonce = (nonce + 1) & U64_MAX
