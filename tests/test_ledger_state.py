from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict

import pytest
import requests

sys.path.append(str(Path(__file__).resolve().parents[1]))

from miner_backend.client.ledger_state import LedgerStateClient, Proof  # noqa: E402
from miner_backend.core.errors import MinerError, TransportError  # noqa: E402

PUBKEY = b"\x07" * 32


class FakeResponse:
    def __init__(self, body: Any, status: int = 200):
        self.body = body
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        return self.body


class FakeSession:
    def __init__(self, routes: Dict[str, Any]):
        self.routes = routes

    def get(self, url: str, timeout: Any) -> FakeResponse:
        path = url.split("http://state.local", 1)[1]
        r = self.routes.get(path, FakeResponse({"error": "not found"}, status=404))
        if isinstance(r, Exception):
            raise r
        return r


def _client(routes: Dict[str, Any]) -> LedgerStateClient:
    return LedgerStateClient("http://state.local/", session=FakeSession(routes))


def test_proof_and_treasury() -> None:
    client = _client({
        f"/proof/{PUBKEY.hex()}": FakeResponse({"hash": "11" * 32, "claimable_rewards": 5, "total_hashes": 9}),
        "/treasury": FakeResponse({"difficulty": "00" + "ff" * 31, "reward_rate": 3}),
    })
    assert client.get_proof(PUBKEY) == Proof(challenge=b"\x11" * 32, claimable_rewards=5, total_hashes=9)
    challenge, difficulty = client.get_current_challenge_and_difficulty(PUBKEY)
    assert challenge == b"\x11" * 32
    assert difficulty == b"\x00" + b"\xff" * 31


def test_missing_proof() -> None:
    client = _client({"/treasury": FakeResponse({"difficulty": "ff" * 32})})
    assert client.get_proof(PUBKEY) is None
    with pytest.raises(MinerError):
        client.get_current_challenge_and_difficulty(PUBKEY)


def test_malformed_treasury_is_a_transport_error() -> None:
    client = _client({"/treasury": FakeResponse({"difficulty": "abc"})})
    with pytest.raises(TransportError):
        client.get_treasury()


def test_server_error_is_a_transport_error() -> None:
    client = _client({"/treasury": FakeResponse({}, status=500)})
    with pytest.raises(TransportError):
        client.get_treasury()


def test_display_balance() -> None:
    path = f"/token-balance/{PUBKEY.hex()}"
    assert _client({path: FakeResponse({"ui_amount_string": "1.25"})}).get_display_balance(PUBKEY) == "1.25"
    assert _client({}).get_display_balance(PUBKEY) == "0.00"
    assert _client({path: requests.ConnectionError("down")}).get_display_balance(PUBKEY) == "Err"
    assert _client({path: FakeResponse({"amount": 1})}).get_display_balance(PUBKEY) == "Err"


def test_known_proof_is_not_fetched_again() -> None:
    client = _client({"/treasury": FakeResponse({"difficulty": "0f" + "ff" * 31})})
    proof = Proof(challenge=b"\x22" * 32)
    challenge, difficulty = client.get_current_challenge_and_difficulty(PUBKEY, proof=proof)
    assert challenge == b"\x22" * 32
    assert difficulty == b"\x0f" + b"\xff" * 31
