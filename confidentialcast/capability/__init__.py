"""
ConfidentialCast Secure Value Capability

Opaque encrypted integers and booleans. The engine composes them with
add / gt / lt / eq / and_ / or_ / select and never sees a plaintext.
"""

from confidentialcast.capability.base import (
    ExternalValue,
    SecureValue,
    SecureValueCapability,
    ValueType,
)
from confidentialcast.capability.local import (
    EncryptedInput,
    InputBuilder,
    LocalCapability,
)

__all__ = [
    "ExternalValue",
    "SecureValue",
    "SecureValueCapability",
    "ValueType",
    "EncryptedInput",
    "InputBuilder",
    "LocalCapability",
]
