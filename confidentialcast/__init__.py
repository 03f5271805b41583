"""
confidentialcast/__init__.py

ConfidentialCast: confidential forecasts settled against public references.

Accounts submit an encrypted target and direction for the current
period together with a plaintext stake. The owner records one public
reference value per period. Once a period has ended, each account
confirms its own forecast; the win/lose decision and the reward are
computed as encrypted values and added to the account's encrypted
points, which only that account can decrypt.

Quick start:

    from confidentialcast import in_memory_runtime

    engine = in_memory_runtime(owner="0x1111...")
    enc = (engine.capability
           .encrypt_input(engine.engine_account, alice)
           .add64(63000).add8(Direction.ABOVE).encrypt())
    engine.submit_forecast(alice, enc[0], enc[1], enc.proof, stake)
"""

__version__ = "0.1.0"

from confidentialcast.capability import (
    ExternalValue,
    LocalCapability,
    SecureValue,
    SecureValueCapability,
    ValueType,
)
from confidentialcast.config import EngineConfig
from confidentialcast.core.exceptions import (
    AccessDeniedError,
    ConfidentialCastError,
    ConfigError,
    JournalError,
    VerificationError,
)
from confidentialcast.core.models import (
    NULL_ACCOUNT,
    UINT64_MAX,
    ZERO_HANDLE,
    Direction,
    Notification,
    NotificationType,
)
from confidentialcast.core.time import DAY_SECONDS, ManualClock, SystemClock
from confidentialcast.core.units import format_units, parse_units
from confidentialcast.runtime import (
    RuntimeContext,
    TransactionResult,
    in_memory_runtime,
)

__all__ = [
    # Engine
    "RuntimeContext",
    "TransactionResult",
    "EngineConfig",
    "in_memory_runtime",
    # Capability
    "LocalCapability",
    "SecureValueCapability",
    "SecureValue",
    "ExternalValue",
    "ValueType",
    # Errors
    "ConfidentialCastError",
    "AccessDeniedError",
    "ConfigError",
    "JournalError",
    "VerificationError",
    # Model
    "Direction",
    "Notification",
    "NotificationType",
    # Helpers
    "ManualClock",
    "SystemClock",
    "parse_units",
    "format_units",
    # Constants
    "DAY_SECONDS",
    "NULL_ACCOUNT",
    "UINT64_MAX",
    "ZERO_HANDLE",
]
