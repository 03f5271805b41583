"""
confidentialcast/core/crypto.py

Ed25519 keys for the two things ConfidentialCast signs:

    journal entries   signed by the engine's journal key
    input proofs      signed by the capability's derived proof key

Signatures travel as unpadded base64url strings; public keys as 64-char
lowercase hex. Verification only ever needs the public hex, so journal
verification and proof checks never touch a private key.
"""

import base64
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
)

SIGNATURE_BYTES = 64


def b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """Accepts padded or unpadded input. Raises ValueError on bad input."""
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


class Ed25519KeyManager:
    """A private Ed25519 key plus its cached public hex."""

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key = private_key
        self._public_hex  = (
            private_key.public_key()
            .public_bytes(Encoding.Raw, PublicFormat.Raw)
            .hex()
        )

    @classmethod
    def generate(cls) -> "Ed25519KeyManager":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_private_bytes(cls, seed: bytes) -> "Ed25519KeyManager":
        """Deterministic key from a 32-byte seed (used for derived proof keys)."""
        if len(seed) != 32:
            raise ValueError(f"Ed25519 seed must be 32 bytes, got {len(seed)}")
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    @classmethod
    def from_file(cls, path: Path) -> "Ed25519KeyManager":
        """
        Load an unencrypted PKCS8 PEM key written by save().

        Raises:
            FileNotFoundError: no file at path
            ValueError:        not a PEM Ed25519 private key
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Key file not found: {path}")
        try:
            key = load_pem_private_key(path.read_bytes(), password=None)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Cannot read private key {path}: {exc}") from exc
        if not isinstance(key, Ed25519PrivateKey):
            raise ValueError(f"{path} holds a {type(key).__name__}, not an Ed25519 key")
        return cls(key)

    @property
    def public_key_hex(self) -> str:
        return self._public_hex

    def sign(self, data: bytes) -> str:
        """Sign already-canonical bytes; returns base64url."""
        return b64url_encode(self._private_key.sign(data))

    @staticmethod
    def verify_detached(data: bytes, signature: str, public_key_hex: str) -> bool:
        """
        True only if `signature` is a valid signature over `data` by the
        key whose raw public bytes are `public_key_hex`.

        Malformed keys or signatures return False rather than raising, so
        callers can report them as a verification failure.
        """
        try:
            public_key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex))
            raw        = b64url_decode(signature)
        except (ValueError, TypeError):
            return False
        if len(raw) != SIGNATURE_BYTES:
            return False
        try:
            public_key.verify(raw, data)
        except InvalidSignature:
            return False
        return True

    def save(self, path: Path) -> None:
        """Write the key as unencrypted PKCS8 PEM, owner-readable only."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self._private_key.private_bytes(
            encoding=             Encoding.PEM,
            format=               PrivateFormat.PKCS8,
            encryption_algorithm= NoEncryption(),
        ))
        path.chmod(0o600)

    def __repr__(self) -> str:
        return f"Ed25519KeyManager(public_key_hex={self._public_hex[:16]}...)"
