"""
confidentialcast/capability/base.py

Secure Value Capability interface.

The engine consumes this capability as an opaque service: encrypted
values are referenced by handle, every operation returns a new handle,
and no method here ever hands a plaintext back to the engine. The only
plaintext exit is user_decrypt(), which belongs to the external
decryption workflow and is gated by the per-handle access list.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


class ValueType:
    """Encrypted value types."""
    EBOOL   = "ebool"
    EUINT8  = "euint8"
    EUINT64 = "euint64"


BIT_WIDTH = {
    ValueType.EBOOL:   1,
    ValueType.EUINT8:  8,
    ValueType.EUINT64: 64,
}


@dataclass(frozen=True)
class SecureValue:
    """An opaque encrypted value: a handle and its type."""
    handle:     str
    value_type: str

    def __str__(self) -> str:
        return self.handle


@dataclass(frozen=True)
class ExternalValue:
    """
    One client-encrypted input as it arrives with a transaction.

    handle     : commitment to the ciphertext, listed in the input proof
    ciphertext : base64url ciphertext produced by the client
    """
    handle:     str
    ciphertext: str

    def to_dict(self) -> dict:
        return {"handle": self.handle, "ciphertext": self.ciphertext}

    @classmethod
    def from_dict(cls, data: dict) -> "ExternalValue":
        return cls(handle=data["handle"], ciphertext=data["ciphertext"])


class SecureValueCapability(ABC):
    """Operations over encrypted values. See module docstring."""

    # ── Input admission ───────────────────────────────────────

    @abstractmethod
    def from_external_input(
        self,
        value:      ExternalValue,
        proof:      str,
        account:    str,
        value_type: str,
    ) -> SecureValue:
        """Verify a client input and admit it. Raises VerificationError."""

    @abstractmethod
    def as_encrypted(self, plaintext: int, value_type: str) -> SecureValue:
        """Trivially encrypt a public constant."""

    def lookup(self, handle: str) -> SecureValue:
        """Resolve a stored handle back to a SecureValue."""
        return SecureValue(handle, self.type_of(handle))

    @abstractmethod
    def type_of(self, handle: str) -> str:
        """Type of a known handle. Raises KeyError for unknown handles."""

    # ── Arithmetic / comparison ───────────────────────────────

    @abstractmethod
    def add(self, a: SecureValue, b: SecureValue) -> SecureValue:
        ...

    @abstractmethod
    def gt(self, a: Any, b: SecureValue) -> SecureValue:
        """a > b. `a` may be a plaintext int."""

    @abstractmethod
    def lt(self, a: Any, b: SecureValue) -> SecureValue:
        """a < b. `a` may be a plaintext int."""

    @abstractmethod
    def eq(self, a: SecureValue, b: Any) -> SecureValue:
        """a == b. `b` may be a plaintext int."""

    @abstractmethod
    def and_(self, a: SecureValue, b: SecureValue) -> SecureValue:
        ...

    @abstractmethod
    def or_(self, a: SecureValue, b: SecureValue) -> SecureValue:
        ...

    @abstractmethod
    def select(
        self, condition: SecureValue, if_true: SecureValue, if_false: SecureValue
    ) -> SecureValue:
        """Oblivious choice between two values of the same type."""

    # ── Access control ────────────────────────────────────────

    @abstractmethod
    def allow(self, value: SecureValue, account: str) -> None:
        """Authorize an account to decrypt a value."""

    @abstractmethod
    def allow_this(self, value: SecureValue) -> None:
        """Authorize the engine itself to keep operating on a value."""

    @abstractmethod
    def is_allowed(self, handle: str, account: str) -> bool:
        ...

    # ── Transaction support ───────────────────────────────────

    @abstractmethod
    def snapshot(self) -> Any:
        """Opaque copy of internal state for rollback."""

    @abstractmethod
    def restore(self, snapshot: Any) -> None:
        ...

    def end_transaction(self) -> None:
        """Drop permissions that only last for the current transaction."""
