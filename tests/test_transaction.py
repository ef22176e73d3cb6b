from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from miner_backend.utils.config import COMPUTE_BUDGET_PROGRAM_ID  # noqa: E402
from miner_backend.wallet.transaction import (  # noqa: E402
    AccountMeta,
    Instruction,
    Transaction,
    set_compute_unit_limit,
)
from miner_backend.wallet.wallet import Wallet  # noqa: E402


def _tx(wallet: Wallet) -> Transaction:
    ix = Instruction("program", [AccountMeta(wallet.address, is_signer=True, is_writable=True)], b"\x01\x02")
    return Transaction.new_with_payer([ix], wallet)


def test_sign_and_verify() -> None:
    wallet = Wallet()
    tx = _tx(wallet)
    assert not tx.is_signed()
    assert not tx.verify()

    signature = tx.sign(wallet, "blockhash-1")

    assert tx.is_signed()
    assert tx.verify()
    assert tx.signatures == [signature]
    assert tx.recent_blockhash == "blockhash-1"


def test_resigning_binds_new_blockhash() -> None:
    wallet = Wallet()
    tx = _tx(wallet)
    first = tx.sign(wallet, "a")
    second = tx.sign(wallet, "b")
    assert first != second
    assert tx.verify()


def test_tampering_breaks_signature() -> None:
    wallet = Wallet()
    tx = _tx(wallet)
    tx.sign(wallet, "a")
    tx.recent_blockhash = "b"
    assert not tx.verify()


def test_insert_instruction_drops_signatures() -> None:
    wallet = Wallet()
    tx = _tx(wallet)
    tx.sign(wallet, "a")
    tx.insert_instruction(0, set_compute_unit_limit(1200))

    assert not tx.is_signed()
    assert tx.instructions[0].program_id == COMPUTE_BUDGET_PROGRAM_ID
    assert len(tx.instructions) == 2


def test_only_payer_can_sign() -> None:
    tx = _tx(Wallet())
    with pytest.raises(ValueError):
        tx.sign(Wallet(), "a")


def test_serialize_round_trip_keeps_signature_valid() -> None:
    wallet = Wallet()
    tx = _tx(wallet)
    tx.sign(wallet, "a")

    restored = Transaction.deserialize(tx.serialize())

    assert restored.to_json() == tx.to_json()
    assert restored.verify()


def test_compute_unit_limit_encoding() -> None:
    ix = set_compute_unit_limit(0x01020304)
    assert ix.data == b"\x02\x04\x03\x02\x01"
    assert ix.accounts == []
    with pytest.raises(ValueError):
        set_compute_unit_limit(2**32)


def test_wallet_save_and_load(tmp_path: Path) -> None:
    wallet = Wallet()
    path = tmp_path / "keys" / "id.pem"
    wallet.save(str(path))

    assert oct(os.stat(path).st_mode & 0o777) == oct(0o600)
    loaded = Wallet.load(str(path))
    assert loaded.address == wallet.address
    assert Wallet.verify(wallet.pubkey, b"msg", loaded.sign(b"msg"))
    assert not Wallet.verify(wallet.pubkey, b"other", loaded.sign(b"msg"))
