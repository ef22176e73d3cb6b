# miner_backend/core/errors.py
from typing import Optional


class MinerError(Exception):
    """Base class for submission failures surfaced to the mining loop."""


class TransportError(MinerError):
    """Network / RPC failure talking to the ledger. Retried where a bound remains."""


class InsufficientBalance(MinerError):
    pass


class SimulationFailed(MinerError):
    pass


class SendFailed(MinerError):
    pass


class ConfirmationTimedOut(MinerError):
    def __init__(self, message: str, signature: Optional[str] = None):
        super().__init__(message)
        self.signature = signature
