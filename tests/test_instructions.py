from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from miner_backend.core.solution import Solution  # noqa: E402
from miner_backend.utils.config import BUS_ADDRESSES, SYSTEM_PROGRAM_ID, TIP_ACCOUNTS  # noqa: E402
from miner_backend.wallet import instructions  # noqa: E402

SIGNER = bytes(range(32))
SOLUTION = Solution(digest=b"\x00\x01" + b"\xaa" * 30, nonce=258)


def test_mine_data_layout() -> None:
    ix = instructions.mine(SIGNER, BUS_ADDRESSES[0], SOLUTION)
    assert ix.data[0] == instructions.MINE
    assert ix.data[1:33] == SOLUTION.digest
    assert ix.data[33:] == b"\x02\x01" + bytes(6)
    assert ix.accounts[0].pubkey == SIGNER.hex()
    assert ix.accounts[0].is_signer
    assert ix.accounts[1].pubkey == BUS_ADDRESSES[0]


def test_build_without_tip_uses_a_known_bus() -> None:
    ixs = instructions.build_instructions(SOLUTION, SIGNER, rng=random.Random(1))
    assert len(ixs) == 1
    assert ixs[0].accounts[1].pubkey in BUS_ADDRESSES


def test_build_with_tip_appends_transfer() -> None:
    ixs = instructions.build_instructions(SOLUTION, SIGNER, rng=random.Random(2), tip_lamports=5000)
    assert len(ixs) == 2
    tip = ixs[1]
    assert tip.program_id == SYSTEM_PROGRAM_ID
    assert tip.accounts[1].pubkey in TIP_ACCOUNTS
    assert tip.data[4:] == (5000).to_bytes(8, "little")


def test_bus_choice_spreads_over_buses() -> None:
    rng = random.Random(3)
    used = {
        instructions.build_instructions(SOLUTION, SIGNER, rng=rng)[0].accounts[1].pubkey
        for _ in range(200)
    }
    assert len(used) > 1


def test_register_and_proof_address() -> None:
    ix = instructions.register(SIGNER)
    assert ix.data == bytes([instructions.REGISTER])
    assert ix.accounts[1].pubkey == instructions.proof_address(SIGNER)
    assert instructions.proof_address(SIGNER) != instructions.proof_address(bytes(32))


def test_transfer_requires_positive_amount() -> None:
    with pytest.raises(ValueError):
        instructions.transfer(SIGNER, TIP_ACCOUNTS[0], 0)
