"""
confidentialcast/core/models.py

Engine data model.

Plaintext fields (stake, reference value, timestamps, flags) are stored
as Python ints/bools. Encrypted fields are stored as handle strings only;
the values behind a handle live in the Secure Value Capability and are
never materialized here.

Wire dicts (to_dict) encode uint64 quantities as decimal strings so they
survive RFC 8785 canonicalization without precision loss.
"""

from dataclasses import dataclass, field
from typing import Any, Dict


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────

UINT64_MAX   = 2**64 - 1
ZERO_HANDLE  = "0x" + "00" * 32
NULL_ACCOUNT = "0x" + "00" * 20


class Direction:
    """Encrypted forecast direction domain."""
    ABOVE = 1
    BELOW = 2


def normalize_account(account: str) -> str:
    """Canonical form of an account identifier; every keyed map uses it."""
    return account.lower()


def is_null_account(account: str) -> bool:
    """True for the zero account or an empty identifier."""
    if not account:
        return True
    return account.lower() == NULL_ACCOUNT


# ─────────────────────────────────────────────────────────────
# Persisted records
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReferenceRecord:
    """
    Authoritative value for one period. Immutable once written.

    The zero record (value=0, recorded_at=0) stands in for "absent";
    a recorded reference always has a non-zero value.
    """
    value:       int = 0
    recorded_at: int = 0

    @property
    def exists(self) -> bool:
        return self.recorded_at != 0

    def to_dict(self) -> Dict[str, Any]:
        return {"value": str(self.value), "recorded_at": self.recorded_at}


@dataclass
class Forecast:
    """One account's encrypted forecast for one period."""
    encrypted_target:    str
    encrypted_direction: str
    stake:               int
    submitted_at:        int
    settled:             bool = False

    def metadata(self) -> tuple:
        """(stake, submitted_at, settled)"""
        return (self.stake, self.submitted_at, self.settled)


# ─────────────────────────────────────────────────────────────
# Notifications
# ─────────────────────────────────────────────────────────────

class NotificationType:
    """Names of the notifications emitted by committed transactions."""
    DEPLOYED              = "Deployed"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
    REFERENCE_RECORDED    = "ReferenceRecorded"
    FORECAST_SUBMITTED    = "ForecastSubmitted"
    FORECAST_CONFIRMED    = "ForecastConfirmed"


@dataclass(frozen=True)
class Notification:
    """
    Public outcome of one committed transaction.

    Fields are plaintext and already wire-encoded; nothing secret ever
    appears in a notification.
    """
    name:   str
    fields: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "fields": dict(self.fields)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        return cls(name=data["name"], fields=dict(data.get("fields", {})))
