"""
Single-writer transaction executor.

execute() MUST, in this exact order:
  1. Acquire lock               : one transaction in flight, ever
  2. Fix the timestamp          : never earlier than the last committed one
  3. Snapshot engine + capability state
  4. Run the handler
  5. Append to the journal      : only for a handler that returned
  6. On any exception: restore the snapshot, journal nothing, re-raise
  7. Drop transient capability permissions
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from confidentialcast.capability.base import SecureValueCapability
from confidentialcast.core.exceptions import ConfidentialCastError, JournalError
from confidentialcast.core.models import Notification
from confidentialcast.core.state import EngineState, Transaction
from confidentialcast.core.time import Clock
from confidentialcast.ledger.journal import Journal

logger = logging.getLogger(__name__)

Handler = Callable[..., Notification]


@dataclass
class TransactionResult:
    """Outcome of one committed transaction."""
    sequence:     int
    timestamp:    int
    caller:       str
    command:      str
    notification: Notification


class TransactionExecutor:
    """
    Applies commands to EngineState one at a time, all-or-nothing.

    Handlers receive (tx, **args) where args are the JSON-safe wire
    arguments that are also written to the journal, so replaying a
    journal line calls the handler with exactly what it saw the first time.
    """

    def __init__(
        self,
        state:         EngineState,
        capability:    SecureValueCapability,
        clock:         Clock,
        journal:       Optional[Journal] = None,
        period_length: int = 86400,
    ):
        self.state         = state
        self.capability    = capability
        self.clock         = clock
        self.journal       = journal
        self.period_length = period_length

        self._lock:           threading.Lock     = threading.Lock()
        self._handlers:       Dict[str, Handler] = {}
        self._sequence:       int                = 0
        self._last_timestamp: int                = 0

    @property
    def sequence(self) -> int:
        """Number of committed transactions."""
        return self._sequence

    @property
    def last_timestamp(self) -> int:
        return self._last_timestamp

    def register(self, command: str, handler: Handler) -> None:
        if command in self._handlers:
            raise ValueError(f"Handler already registered for '{command}'")
        self._handlers[command] = handler

    def execute(
        self,
        caller:    str,
        command:   str,
        args:      Dict[str, Any],
        timestamp: Optional[int] = None,
        journaled: bool = True,
    ) -> TransactionResult:
        """
        Run one command as a transaction.

        Args:
            caller:    Account invoking the command
            command:   Registered command name
            args:      JSON-safe keyword arguments for the handler
            timestamp: Pin the transaction time (journal replay); defaults
                       to the clock, clamped so time never runs backwards
            journaled: False while replaying entries already in the journal

        Raises:
            The handler's ConfidentialCastError, after rolling back.
        """
        handler = self._handlers.get(command)
        if handler is None:
            raise ValueError(f"Unknown command '{command}'")

        with self._lock:
            if timestamp is None:
                timestamp = max(self.clock.now(), self._last_timestamp)
            elif timestamp < self._last_timestamp:
                raise JournalError(
                    "Transaction timestamp precedes the last committed transaction",
                    {"timestamp": timestamp, "last": self._last_timestamp},
                )

            tx = Transaction(
                caller=        caller,
                timestamp=     int(timestamp),
                sequence=      self._sequence,
                period_length= self.period_length,
            )

            state_snapshot      = self.state.snapshot()
            capability_snapshot = self.capability.snapshot()
            try:
                notification = handler(tx, **args)
                if journaled and self.journal is not None:
                    self.journal.append(
                        timestamp=    tx.timestamp,
                        caller=       tx.caller,
                        command=      command,
                        args=         args,
                        notification= notification.to_dict(),
                    )
            except ConfidentialCastError as exc:
                self.state.restore(state_snapshot)
                self.capability.restore(capability_snapshot)
                logger.warning(
                    "Rejected %s from %s: %s (%s)",
                    command, tx.caller, exc.name, exc.message,
                )
                raise
            except Exception:
                self.state.restore(state_snapshot)
                self.capability.restore(capability_snapshot)
                logger.exception("Transaction %s from %s failed", command, tx.caller)
                raise
            finally:
                self.capability.end_transaction()

            self._sequence       += 1
            self._last_timestamp  = tx.timestamp

        logger.info("Committed #%d %s from %s", tx.sequence, command, tx.caller)
        return TransactionResult(
            sequence=     tx.sequence,
            timestamp=    tx.timestamp,
            caller=       tx.caller,
            command=      command,
            notification= notification,
        )
