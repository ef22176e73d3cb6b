import hashlib
from typing import Callable, Dict

from Crypto.Hash import keccak

Hasher = Callable[[bytes], bytes]


def keccak256(data: bytes) -> bytes:
    """Legacy Keccak-256 (pre-NIST padding), the ledger's hash."""
    return keccak.new(digest_bits=256, data=data).digest()


def sha3_256(data: bytes) -> bytes:
    return hashlib.sha3_256(data).digest()


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


HASHERS: Dict[str, Hasher] = {
    "keccak256": keccak256,
    "sha3_256": sha3_256,
    "sha256": sha256,
}


def get_hasher(name: str) -> Hasher:
    try:
        return HASHERS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown hash {name!r}; expected one of {sorted(HASHERS)}") from None


def hashv(*parts: bytes, hasher: Hasher = keccak256) -> bytes:
    """Hash the concatenation of ``parts``."""
    return hasher(b"".join(parts))
