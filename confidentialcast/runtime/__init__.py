"""
ConfidentialCast Runtime - single-writer executor and runtime context.

All state changes pass through one TransactionExecutor, which makes
each command atomic and journals it in commit order.
"""

from confidentialcast.core.state import EngineState, Transaction
from confidentialcast.runtime.executor import TransactionExecutor, TransactionResult
from confidentialcast.runtime.context import Command, RuntimeContext, in_memory_runtime

__all__ = [
    "EngineState",
    "Transaction",
    "TransactionExecutor",
    "TransactionResult",
    "Command",
    "RuntimeContext",
    "in_memory_runtime",
]
