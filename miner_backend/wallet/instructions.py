# wallet/instructions.py
"""
Instruction builders for the miner program.

Account layout and data encoding belong to the remote program; the pipeline
treats the results as opaque.
"""
import hashlib
import random
from typing import List, Optional, Sequence

from miner_backend.core.solution import Solution
from miner_backend.utils.config import (
    BUS_ADDRESSES,
    MINER_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    TIP_ACCOUNTS,
    TREASURY_ADDRESS,
)
from miner_backend.wallet.transaction import AccountMeta, Instruction

REGISTER = 1
MINE = 2


def proof_address(pubkey: bytes, program_id: str = MINER_PROGRAM_ID) -> str:
    """Deterministic per-miner proof account address."""
    return hashlib.sha256(b"proof" + bytes(pubkey) + program_id.encode("utf-8")).hexdigest()


def register(signer_pubkey: bytes) -> Instruction:
    signer = bytes(signer_pubkey).hex()
    return Instruction(
        MINER_PROGRAM_ID,
        [
            AccountMeta(signer, is_signer=True, is_writable=True),
            AccountMeta(proof_address(signer_pubkey), is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID),
        ],
        bytes([REGISTER]),
    )


def mine(signer_pubkey: bytes, bus: str, solution: Solution) -> Instruction:
    """Submit ``solution`` against ``bus``. Data: tag || digest || nonce (u64 LE)."""
    signer = bytes(signer_pubkey).hex()
    return Instruction(
        MINER_PROGRAM_ID,
        [
            AccountMeta(signer, is_signer=True, is_writable=True),
            AccountMeta(bus, is_writable=True),
            AccountMeta(proof_address(signer_pubkey), is_writable=True),
            AccountMeta(TREASURY_ADDRESS),
        ],
        bytes([MINE]) + solution.digest + solution.nonce.to_bytes(8, "little"),
    )


def transfer(from_pubkey: bytes, to_address: str, lamports: int) -> Instruction:
    lamports = int(lamports)
    if lamports <= 0:
        raise ValueError("transfer amount must be positive")
    return Instruction(
        SYSTEM_PROGRAM_ID,
        [
            AccountMeta(bytes(from_pubkey).hex(), is_signer=True, is_writable=True),
            AccountMeta(to_address, is_writable=True),
        ],
        (2).to_bytes(4, "little") + lamports.to_bytes(8, "little"),
    )


def build_instructions(
    solution: Solution,
    signer_pubkey: bytes,
    rng: Optional[random.Random] = None,
    tip_lamports: int = 0,
    buses: Sequence[str] = BUS_ADDRESSES,
    tip_accounts: Sequence[str] = TIP_ACCOUNTS,
) -> List[Instruction]:
    """Mine instruction on a random bus, plus an optional tip to a random tip account."""
    rng = rng or random.Random()
    ixs = [mine(signer_pubkey, rng.choice(list(buses)), solution)]
    if tip_lamports:
        ixs.append(transfer(signer_pubkey, rng.choice(list(tip_accounts)), tip_lamports))
    return ixs
