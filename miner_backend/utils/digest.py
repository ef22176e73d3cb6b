# miner_backend/utils/digest.py
from .config import DIGEST_SIZE, U64_MAX


def digest_le(digest: bytes, bound: bytes) -> bool:
    """
    True when ``digest <= bound`` as big-endian unsigned integers.

    For equal-length byte strings lexicographic order is big-endian numeric
    order, so the bytes are compared directly without an integer conversion.
    """
    if len(digest) != len(bound):
        raise ValueError(f"digest length {len(digest)} != bound length {len(bound)}")
    return bytes(digest) <= bytes(bound)


def nonce_to_le_bytes(nonce: int) -> bytes:
    if not 0 <= nonce <= U64_MAX:
        raise ValueError(f"nonce out of u64 range: {nonce}")
    return nonce.to_bytes(8, "little")


def from_hex(hex_string: str, size: int = DIGEST_SIZE) -> bytes:
    """Parse a hex digest (optional 0x prefix). ``size=0`` skips the length check."""
    if not isinstance(hex_string, str):
        raise TypeError("from_hex expects a hex string")
    hex_string = hex_string.lower()
    if hex_string.startswith("0x"):
        hex_string = hex_string[2:]
    try:
        raw = bytes.fromhex(hex_string)
    except ValueError:
        raise ValueError(f"Invalid hex digest: {hex_string!r}") from None
    if size and len(raw) != size:
        raise ValueError(f"expected {size} bytes, got {len(raw)}")
    return raw


def difficulty_from_leading_zero_bits(bits: int, size: int = DIGEST_SIZE) -> bytes:
    """Bound accepting digests with at least ``bits`` leading zero bits."""
    total = size * 8
    if not 0 <= bits <= total:
        raise ValueError(f"bits must be within 0..{total}")
    return ((1 << (total - bits)) - 1).to_bytes(size, "big")
