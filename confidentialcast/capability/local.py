"""
confidentialcast/capability/local.py

LocalCapability: in-process reference implementation of the Secure
Value Capability, for development, tests and single-host deployments.

Contracts:
    Input encryption  AES-256-GCM, key derived (HKDF-SHA256) from the
                      capability secret. AAD binds engine, account and type.
    Input handle      "0x" + sha256(raw ciphertext)
    Input proof       base64url(JCS({"handles": [...], "signature": sig}))
                      sig = Ed25519 over JCS({"contract", "account", "handles"})
    Computed handle   "0x" + sha256(JCS({"op", "operands", "index"}))
                      index is a per-capability counter, so the same sequence
                      of operations always yields the same handles.
    Arithmetic        wraps modulo 2**bits, as encrypted integer types do.

Access:
    Values produced or admitted during a transaction are usable by the
    engine until end_transaction(). Anything the engine needs in a later
    transaction must be granted with allow_this(). Accounts may decrypt
    only handles granted to them with allow().

The plaintext table is the "ciphertext" of this implementation. It is
never exposed except through user_decrypt().
"""

import copy
import hashlib
import json
import logging
import os
import secrets
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from confidentialcast.capability.base import (
    BIT_WIDTH,
    ExternalValue,
    SecureValue,
    SecureValueCapability,
    ValueType,
)
from confidentialcast.core.canonical import canonical_hash, canonicalize
from confidentialcast.core.crypto import (
    Ed25519KeyManager,
    b64url_decode,
    b64url_encode,
)
from confidentialcast.core.exceptions import AccessDeniedError, VerificationError
from confidentialcast.core.models import ZERO_HANDLE, normalize_account

logger = logging.getLogger(__name__)

_NONCE_BYTES = 12
_BYTE_WIDTH  = {
    ValueType.EBOOL:   1,
    ValueType.EUINT8:  1,
    ValueType.EUINT64: 8,
}


def _derive(secret: bytes, label: bytes) -> bytes:
    return HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=label,
    ).derive(secret)


def _aad(contract: str, account: str, value_type: str) -> bytes:
    return canonicalize({
        "contract":   normalize_account(contract),
        "account":    normalize_account(account),
        "value_type": value_type,
    })


def _proof_message(contract: str, account: str, handles: List[str]) -> bytes:
    return canonicalize({
        "contract": normalize_account(contract),
        "account":  normalize_account(account),
        "handles":  list(handles),
    })


# ─────────────────────────────────────────────────────────────
# Client-side input encryption
# ─────────────────────────────────────────────────────────────

class EncryptedInput:
    """Bundle of encrypted inputs plus the proof that admits them."""

    def __init__(self, values: List[ExternalValue], proof: str) -> None:
        self.values = values
        self.proof  = proof

    def __getitem__(self, index: int) -> ExternalValue:
        return self.values[index]


class InputBuilder:
    """
    Collects plaintexts for one (contract, account) and encrypts them.

        enc = capability.encrypt_input(engine, alice).add64(63000).add8(1).encrypt()
        runtime.submit_forecast(alice, enc[0], enc[1], enc.proof, stake)
    """

    def __init__(self, capability: "LocalCapability", contract: str, account: str):
        self._capability = capability
        self._contract   = contract
        self._account    = account
        self._pending: List[Tuple[str, int]] = []

    def add_bool(self, value: bool) -> "InputBuilder":
        self._pending.append((ValueType.EBOOL, int(bool(value))))
        return self

    def add8(self, value: int) -> "InputBuilder":
        self._pending.append((ValueType.EUINT8, self._check(value, ValueType.EUINT8)))
        return self

    def add64(self, value: int) -> "InputBuilder":
        self._pending.append((ValueType.EUINT64, self._check(value, ValueType.EUINT64)))
        return self

    def encrypt(self) -> EncryptedInput:
        if not self._pending:
            raise ValueError("No values added to encrypted input")

        values = []
        for value_type, plaintext in self._pending:
            nonce = os.urandom(_NONCE_BYTES)
            raw   = nonce + self._capability._cipher.encrypt(
                nonce,
                plaintext.to_bytes(_BYTE_WIDTH[value_type], "big"),
                _aad(self._contract, self._account, value_type),
            )
            values.append(ExternalValue(
                handle=     "0x" + hashlib.sha256(raw).hexdigest(),
                ciphertext= b64url_encode(raw),
            ))

        handles   = [v.handle for v in values]
        signature = self._capability._proof_key.sign(
            _proof_message(self._contract, self._account, handles)
        )
        proof = b64url_encode(canonicalize({
            "handles":   handles,
            "signature": signature,
        }))
        return EncryptedInput(values, proof)

    @staticmethod
    def _check(value: int, value_type: str) -> int:
        value = int(value)
        if not 0 <= value < 2 ** BIT_WIDTH[value_type]:
            raise ValueError(f"{value} does not fit in {value_type}")
        return value


# ─────────────────────────────────────────────────────────────
# LocalCapability
# ─────────────────────────────────────────────────────────────

class LocalCapability(SecureValueCapability):
    """See module docstring."""

    def __init__(self, secret: bytes, engine_account: str) -> None:
        if len(secret) != 32:
            raise ValueError(f"Capability secret must be 32 bytes, got {len(secret)}")
        self._secret        = secret
        self.engine_account = engine_account

        self._cipher    = AESGCM(_derive(secret, b"confidentialcast/input-cipher"))
        self._proof_key = Ed25519KeyManager.from_private_bytes(
            _derive(secret, b"confidentialcast/input-proof")
        )

        self._values:    Dict[str, Tuple[str, int]] = {}
        self._acl:       Dict[str, Set[str]]        = {}
        self._transient: Set[str]                   = set()
        self._counter:   int                        = 0

    # ── Construction / persistence ────────────────────────────

    @classmethod
    def generate(cls, engine_account: str) -> "LocalCapability":
        return cls(secrets.token_bytes(32), engine_account)

    @classmethod
    def from_file(cls, path: Path, engine_account: str) -> "LocalCapability":
        """Load a hex-encoded 32-byte secret."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Capability key not found: {path}")
        try:
            secret = bytes.fromhex(path.read_text(encoding="utf-8").strip())
        except ValueError as exc:
            raise ValueError(f"Capability key {path} is not valid hex: {exc}") from exc
        return cls(secret, engine_account)

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self._secret.hex() + "\n", encoding="utf-8")
        os.chmod(path, 0o600)

    @property
    def proof_public_key_hex(self) -> str:
        return self._proof_key.public_key_hex

    # ── Client side ───────────────────────────────────────────

    def encrypt_input(self, contract: str, account: str) -> InputBuilder:
        return InputBuilder(self, contract, account)

    # ── Input admission ───────────────────────────────────────

    def from_external_input(
        self,
        value:      ExternalValue,
        proof:      str,
        account:    str,
        value_type: str,
    ) -> SecureValue:
        try:
            decoded   = json.loads(b64url_decode(proof))
            handles   = decoded["handles"]
            signature = decoded["signature"]
        except (ValueError, TypeError, KeyError) as exc:
            raise VerificationError("Malformed input proof", {"error": str(exc)})

        if not isinstance(handles, list) or value.handle not in handles:
            raise VerificationError(
                "Handle is not covered by the input proof",
                {"handle": value.handle},
            )

        if not Ed25519KeyManager.verify_detached(
            _proof_message(self.engine_account, account, handles),
            signature,
            self._proof_key.public_key_hex,
        ):
            raise VerificationError(
                "Input proof signature invalid for this account",
                {"account": account},
            )

        try:
            raw = b64url_decode(value.ciphertext)
        except ValueError as exc:
            raise VerificationError("Ciphertext is not base64url", {"error": str(exc)})

        if "0x" + hashlib.sha256(raw).hexdigest() != value.handle:
            raise VerificationError(
                "Ciphertext does not match its handle",
                {"handle": value.handle},
            )

        try:
            plain_bytes = self._cipher.decrypt(
                raw[:_NONCE_BYTES],
                raw[_NONCE_BYTES:],
                _aad(self.engine_account, account, value_type),
            )
        except (InvalidTag, ValueError):
            raise VerificationError(
                f"Ciphertext is not a valid {value_type} input",
                {"handle": value.handle},
            )

        if len(plain_bytes) != _BYTE_WIDTH[value_type]:
            raise VerificationError(
                f"Ciphertext width does not match {value_type}",
                {"handle": value.handle},
            )

        self._values[value.handle] = (value_type, int.from_bytes(plain_bytes, "big"))
        self._acl.setdefault(value.handle, set())
        self._transient.add(value.handle)
        return SecureValue(value.handle, value_type)

    def as_encrypted(self, plaintext: int, value_type: str) -> SecureValue:
        return self._emit(
            "trivial",
            [{"scalar": str(int(plaintext))}],
            value_type,
            self._wrap(int(plaintext), value_type),
        )

    def type_of(self, handle: str) -> str:
        return self._values[handle][0]

    # ── Arithmetic / comparison ───────────────────────────────

    def add(self, a: SecureValue, b: SecureValue) -> SecureValue:
        self._require_same_type(a, b)
        return self._emit(
            "add", [a, b], a.value_type,
            self._wrap(self._plain(a) + self._plain(b), a.value_type),
        )

    def gt(self, a: Any, b: SecureValue) -> SecureValue:
        return self._emit("gt", [a, b], ValueType.EBOOL,
                          int(self._plain(a) > self._plain(b)))

    def lt(self, a: Any, b: SecureValue) -> SecureValue:
        return self._emit("lt", [a, b], ValueType.EBOOL,
                          int(self._plain(a) < self._plain(b)))

    def eq(self, a: SecureValue, b: Any) -> SecureValue:
        return self._emit("eq", [a, b], ValueType.EBOOL,
                          int(self._plain(a) == self._plain(b)))

    def and_(self, a: SecureValue, b: SecureValue) -> SecureValue:
        return self._emit("and", [a, b], ValueType.EBOOL,
                          self._plain(a) & self._plain(b))

    def or_(self, a: SecureValue, b: SecureValue) -> SecureValue:
        return self._emit("or", [a, b], ValueType.EBOOL,
                          self._plain(a) | self._plain(b))

    def select(
        self, condition: SecureValue, if_true: SecureValue, if_false: SecureValue
    ) -> SecureValue:
        if condition.value_type != ValueType.EBOOL:
            raise TypeError(f"select condition must be ebool, got {condition.value_type}")
        self._require_same_type(if_true, if_false)
        chosen = if_true if self._plain(condition) else if_false
        return self._emit(
            "select", [condition, if_true, if_false],
            if_true.value_type, self._plain(chosen),
        )

    # ── Access control ────────────────────────────────────────

    def allow(self, value: SecureValue, account: str) -> None:
        self._require_usable(value.handle)
        self._acl[value.handle].add(normalize_account(account))

    def allow_this(self, value: SecureValue) -> None:
        self.allow(value, self.engine_account)

    def is_allowed(self, handle: str, account: str) -> bool:
        return normalize_account(account) in self._acl.get(handle, ())

    # ── Decryption workflow ───────────────────────────────────

    def user_decrypt(self, handle: str, account: str) -> Optional[Any]:
        """
        Reveal a handle's plaintext to an authorized account.

        Returns None for ZERO_HANDLE (nothing to decrypt), a bool for
        ebool handles and an int otherwise.
        Raises AccessDeniedError if the account was never granted access.
        """
        if handle == ZERO_HANDLE:
            return None
        if not self.is_allowed(handle, account):
            raise AccessDeniedError(
                "Account is not authorized to decrypt this handle",
                {"handle": handle, "account": account},
            )
        value_type, plaintext = self._values[handle]
        if value_type == ValueType.EBOOL:
            return bool(plaintext)
        return plaintext

    # ── Transaction support ───────────────────────────────────

    def snapshot(self) -> Any:
        return (
            dict(self._values),
            copy.deepcopy(self._acl),
            set(self._transient),
            self._counter,
        )

    def restore(self, snapshot: Any) -> None:
        values, acl, transient, counter = snapshot
        self._values    = dict(values)
        self._acl       = copy.deepcopy(acl)
        self._transient = set(transient)
        self._counter   = counter

    def end_transaction(self) -> None:
        self._transient.clear()

    # ── Internal ──────────────────────────────────────────────

    def _plain(self, operand: Any) -> int:
        if isinstance(operand, SecureValue):
            self._require_usable(operand.handle)
            return self._values[operand.handle][1]
        return int(operand)

    def _require_usable(self, handle: str) -> None:
        if handle not in self._values:
            raise KeyError(f"Unknown handle {handle}")
        if handle in self._transient:
            return
        if normalize_account(self.engine_account) not in self._acl.get(handle, ()):
            raise AccessDeniedError(
                "Engine is not authorized to use this handle",
                {"handle": handle},
            )

    @staticmethod
    def _require_same_type(a: SecureValue, b: SecureValue) -> None:
        if a.value_type != b.value_type:
            raise TypeError(f"Type mismatch: {a.value_type} vs {b.value_type}")

    @staticmethod
    def _wrap(value: int, value_type: str) -> int:
        return value % (2 ** BIT_WIDTH[value_type])

    def _emit(
        self,
        op:         str,
        operands:   List[Any],
        value_type: str,
        plaintext:  int,
    ) -> SecureValue:
        self._counter += 1
        encoded = [
            o.handle if isinstance(o, SecureValue) else o if isinstance(o, dict)
            else {"scalar": str(int(o))}
            for o in operands
        ]
        handle = "0x" + canonical_hash({
            "op":       op,
            "operands": encoded,
            "index":    self._counter,
        })
        self._values[handle] = (value_type, plaintext)
        self._acl[handle]    = set()
        self._transient.add(handle)
        logger.debug("capability %s -> %s (%s)", op, handle[:18], value_type)
        return SecureValue(handle, value_type)
