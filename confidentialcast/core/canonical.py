"""
Canonical JSON (RFC 8785, JCS).

Every byte string that gets hashed or signed is produced here: journal
entry hashes and signatures, input proof messages, input associated data
and computed handle derivation. Two engines holding the same data always
produce the same bytes.

JCS serializes numbers as IEEE doubles, so uint64 quantities travel as
decimal strings.
"""

import hashlib
from typing import Any

import jcs


def canonicalize(obj: Any) -> bytes:
    return jcs.canonicalize(obj)


def canonical_hash(obj: Any) -> str:
    """Hex SHA-256 of canonicalize(obj)."""
    return hashlib.sha256(canonicalize(obj)).hexdigest()
