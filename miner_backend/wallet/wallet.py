# wallet/wallet.py
import os
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)


class Wallet:
    """
    The miner's signer. Holds one Ed25519 keypair; the raw 32-byte public key
    is the identity mixed into every candidate digest and the fee payer of
    every submission.
    """

    def __init__(self, private_key: Optional[Ed25519PrivateKey] = None):
        self.private_key = private_key or Ed25519PrivateKey.generate()
        self.public_key_obj = self.private_key.public_key()
        self.pubkey = self.public_key_obj.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self.address = self.pubkey.hex()

    def __repr__(self):
        return f"<Wallet {self.address}>"

    def sign(self, message: bytes) -> bytes:
        return self.private_key.sign(message)

    @staticmethod
    def verify(pubkey: bytes, message: bytes, signature: bytes) -> bool:
        try:
            Ed25519PublicKey.from_public_bytes(pubkey).verify(signature, message)
            return True
        except (InvalidSignature, ValueError):
            return False

    def serialize_private_key(self) -> str:
        """Return PEM string of the private key."""
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("utf-8")

    @staticmethod
    def deserialize_private_key(serialized: str) -> Ed25519PrivateKey:
        key = serialization.load_pem_private_key(serialized.encode("utf-8"), password=None)
        if not isinstance(key, Ed25519PrivateKey):
            raise ValueError("keypair is not an Ed25519 private key")
        return key

    @classmethod
    def from_pem(cls, serialized: str) -> "Wallet":
        return cls(cls.deserialize_private_key(serialized))

    @classmethod
    def load(cls, path: str) -> "Wallet":
        with open(os.path.expanduser(path), "r", encoding="utf-8") as f:
            return cls.from_pem(f.read())

    def save(self, path: str) -> None:
        path = os.path.expanduser(path)
        d = os.path.dirname(path)
        if d:
            os.makedirs(d, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.serialize_private_key())
        os.chmod(path, 0o600)
