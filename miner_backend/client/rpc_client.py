# miner_backend/client/rpc_client.py
"""
Ledger transport.

``LedgerTransport`` is everything the submission pipeline needs from the
ledger. ``RpcClient`` implements it as JSON-RPC 2.0 over HTTP POST with a
requests.Session; every network, HTTP or JSON-RPC level failure surfaces as
``TransportError``.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, List, Optional, Protocol

import requests

from miner_backend.core.errors import TransportError
from miner_backend.utils.config import COMMITMENT, RPC_RETRIES
from miner_backend.wallet.transaction import Transaction

logger = logging.getLogger(__name__)


class FinalityLevel(IntEnum):
    PROCESSED = 0
    CONFIRMED = 1
    FINALIZED = 2

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["FinalityLevel"]:
        if not value:
            return None
        try:
            return cls[str(value).upper()]
        except KeyError:
            logger.warning("unknown confirmation status %r", value)
            return None


@dataclass(frozen=True)
class ReferencePoint:
    """Recent blockhash a transaction is bound to, and the slot it was read at."""

    blockhash: str
    slot: int


@dataclass(frozen=True)
class SimulationResult:
    err: Any = None
    units_consumed: Optional[int] = None
    logs: List[str] = field(default_factory=list)


class LedgerTransport(Protocol):
    def simulate(self, tx: Transaction) -> SimulationResult: ...

    def send(self, tx: Transaction, reference_point: ReferencePoint) -> str: ...

    def get_status(self, signature: str) -> Optional[FinalityLevel]: ...

    def get_balance(self, pubkey: bytes) -> int: ...

    def get_latest_reference_point(self) -> ReferencePoint: ...


class RpcClient:
    def __init__(self, url: str, session: Optional[requests.Session] = None,
                 commitment: str = COMMITMENT, timeout=(5, 20)):
        self.url = url.rstrip("/")
        self.session = session or requests.Session()
        self.commitment = commitment
        self.timeout = timeout
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[list] = None) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        logger.debug("rpc -> %s %s", method, payload["id"])
        try:
            r = self.session.post(self.url, json=payload, timeout=self.timeout)
            r.raise_for_status()
            body = r.json()
        except requests.RequestException as e:
            raise TransportError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"{method} returned malformed JSON") from e

        if not isinstance(body, dict):
            raise TransportError(f"{method} returned unexpected payload: {body!r}")
        err = body.get("error")
        if err:
            if isinstance(err, dict):
                raise TransportError(f"{method} error {err.get('code')}: {err.get('message')}")
            raise TransportError(f"{method} error: {err}")
        if "result" not in body:
            raise TransportError(f"{method} response has no result")
        return body["result"]

    def get_balance(self, pubkey: bytes) -> int:
        res = self.call("getBalance", [bytes(pubkey).hex(), {"commitment": self.commitment}])
        try:
            return int(res["value"])
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"getBalance: unexpected result {res!r}") from e

    def get_latest_reference_point(self) -> ReferencePoint:
        res = self.call("getLatestBlockhash", [{"commitment": self.commitment}])
        try:
            return ReferencePoint(blockhash=res["value"]["blockhash"], slot=int(res["context"]["slot"]))
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"getLatestBlockhash: unexpected result {res!r}") from e

    def simulate(self, tx: Transaction) -> SimulationResult:
        res = self.call("simulateTransaction", [
            tx.serialize(),
            {
                "sigVerify": False,
                "replaceRecentBlockhash": True,
                "commitment": self.commitment,
                "encoding": "base64",
            },
        ])
        try:
            value = (res or {}).get("value") or {}
            units = value.get("unitsConsumed")
            return SimulationResult(
                err=value.get("err"),
                units_consumed=int(units) if units is not None else None,
                logs=list(value.get("logs") or []),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise TransportError(f"simulateTransaction: unexpected result {res!r}") from e

    def send(self, tx: Transaction, reference_point: ReferencePoint) -> str:
        return str(self.call("sendTransaction", [
            tx.serialize(),
            {
                "skipPreflight": True,
                "preflightCommitment": self.commitment,
                "encoding": "base64",
                "maxRetries": RPC_RETRIES,
                "minContextSlot": reference_point.slot,
            },
        ]))

    def get_status(self, signature: str) -> Optional[FinalityLevel]:
        res = self.call("getSignatureStatuses", [[signature]])
        try:
            values = (res or {}).get("value") or []
            status = values[0] if values else None
            if not status:
                return None
            return FinalityLevel.parse(status.get("confirmationStatus"))
        except (AttributeError, KeyError, TypeError, IndexError) as e:
            raise TransportError(f"getSignatureStatuses: unexpected result {res!r}") from e
