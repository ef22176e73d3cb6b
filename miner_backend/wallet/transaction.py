# wallet/transaction.py
import base64
import json
from typing import Any, Dict, List, Optional, Sequence

from miner_backend.utils.config import COMPUTE_BUDGET_PROGRAM_ID
from miner_backend.wallet.wallet import Wallet


class AccountMeta:
    def __init__(self, pubkey: str, is_signer: bool = False, is_writable: bool = False):
        self.pubkey = str(pubkey)
        self.is_signer = bool(is_signer)
        self.is_writable = bool(is_writable)

    def __repr__(self):
        return f"AccountMeta({self.pubkey}, signer={self.is_signer}, writable={self.is_writable})"

    def __eq__(self, other):
        return isinstance(other, AccountMeta) and self.to_json() == other.to_json()

    def to_json(self):
        return {"pubkey": self.pubkey, "is_signer": self.is_signer, "is_writable": self.is_writable}

    @staticmethod
    def from_json(data):
        return AccountMeta(**data)


class Instruction:
    """One opaque program call. The pipeline never looks inside ``data``."""

    def __init__(self, program_id: str, accounts: Optional[Sequence[AccountMeta]] = None, data: bytes = b""):
        self.program_id = str(program_id)
        self.accounts: List[AccountMeta] = list(accounts or [])
        self.data = bytes(data)

    def __repr__(self):
        return f"Instruction(program_id: {self.program_id}, accounts: {len(self.accounts)}, data: {self.data.hex()})"

    def __eq__(self, other):
        return isinstance(other, Instruction) and self.to_json() == other.to_json()

    def to_json(self) -> Dict[str, Any]:
        return {
            "program_id": self.program_id,
            "accounts": [a.to_json() for a in self.accounts],
            "data": base64.b64encode(self.data).decode("ascii"),
        }

    @staticmethod
    def from_json(data: Dict[str, Any]) -> "Instruction":
        return Instruction(
            program_id=data["program_id"],
            accounts=[AccountMeta.from_json(a) for a in data.get("accounts", [])],
            data=base64.b64decode(data.get("data", "")),
        )


def set_compute_unit_limit(units: int) -> Instruction:
    """Compute budget instruction capping the units the submission may consume."""
    units = int(units)
    if not 0 <= units <= 0xFFFFFFFF:
        raise ValueError(f"compute unit limit out of u32 range: {units}")
    return Instruction(COMPUTE_BUDGET_PROGRAM_ID, [], bytes([2]) + units.to_bytes(4, "little"))


def _canon_bytes(x: Any) -> bytes:
    return json.dumps(x, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class Transaction:
    """
    Ordered instructions paid for and signed by one wallet.

    Invariants:
      - instructions are only changed through ``insert_instruction`` before signing
        (the compute unit limit injected after simulation);
      - any change to the message drops existing signatures.
    """

    def __init__(
        self,
        instructions: Sequence[Instruction],
        payer: str,
        recent_blockhash: Optional[str] = None,
        signatures: Optional[List[str]] = None,
    ):
        self.instructions: List[Instruction] = list(instructions)
        self.payer = str(payer)
        self.recent_blockhash = recent_blockhash
        self.signatures: List[str] = list(signatures or [])

    def __repr__(self):
        return (
            "Transaction("
            f"payer: {self.payer}, "
            f"recent_blockhash: {self.recent_blockhash}, "
            f"instructions: {self.instructions}, "
            f"signatures: {self.signatures})"
        )

    @staticmethod
    def new_with_payer(instructions: Sequence[Instruction], payer: Wallet) -> "Transaction":
        return Transaction(instructions, payer.address)

    def insert_instruction(self, index: int, instruction: Instruction) -> None:
        self.instructions.insert(index, instruction)
        self.signatures = []

    def message(self) -> Dict[str, Any]:
        return {
            "payer": self.payer,
            "recent_blockhash": self.recent_blockhash,
            "instructions": [ix.to_json() for ix in self.instructions],
        }

    def message_bytes(self) -> bytes:
        return _canon_bytes(self.message())

    def sign(self, wallet: Wallet, recent_blockhash: str) -> str:
        """Bind to ``recent_blockhash``, sign, and return the signature (the receipt id)."""
        if wallet.address != self.payer:
            raise ValueError("Only the fee payer may sign this transaction")
        self.recent_blockhash = recent_blockhash
        signature = wallet.sign(self.message_bytes()).hex()
        self.signatures = [signature]
        return signature

    def is_signed(self) -> bool:
        return bool(self.signatures)

    def verify(self) -> bool:
        if not self.signatures:
            return False
        return Wallet.verify(bytes.fromhex(self.payer), self.message_bytes(), bytes.fromhex(self.signatures[0]))

    def to_json(self) -> Dict[str, Any]:
        return {"message": self.message(), "signatures": list(self.signatures)}

    @staticmethod
    def from_json(data: Dict[str, Any]) -> "Transaction":
        msg = data["message"]
        return Transaction(
            instructions=[Instruction.from_json(ix) for ix in msg.get("instructions", [])],
            payer=msg["payer"],
            recent_blockhash=msg.get("recent_blockhash"),
            signatures=data.get("signatures", []),
        )

    def serialize(self) -> str:
        """Base64 wire form handed to the ledger transport."""
        return base64.b64encode(_canon_bytes(self.to_json())).decode("ascii")

    @staticmethod
    def deserialize(encoded: str) -> "Transaction":
        return Transaction.from_json(json.loads(base64.b64decode(encoded)))
