"""
Runtime context: wires the engine together and exposes the invocation surface.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from confidentialcast.access.control import AccessControl
from confidentialcast.capability.base import ExternalValue
from confidentialcast.capability.local import LocalCapability
from confidentialcast.config import EngineConfig
from confidentialcast.core.crypto import Ed25519KeyManager
from confidentialcast.core.exceptions import ConfidentialCastError, JournalError
from confidentialcast.core.models import Notification, ReferenceRecord
from confidentialcast.core.state import EngineState
from confidentialcast.core.time import DAY_SECONDS, Clock, ManualClock, SystemClock, period_of
from confidentialcast.ledger.journal import Journal
from confidentialcast.ledger.rewards import RewardsLedger
from confidentialcast.registry.forecast import ForecastRegistry
from confidentialcast.registry.reference import ReferenceRegistry
from confidentialcast.runtime.executor import TransactionExecutor, TransactionResult
from confidentialcast.settlement.engine import SettlementEngine

logger = logging.getLogger(__name__)


class Command:
    """Journaled command names."""
    DEPLOY             = "deploy"
    TRANSFER_OWNERSHIP = "transfer_ownership"
    RECORD_REFERENCE   = "record_reference"
    SUBMIT_FORECAST    = "submit_forecast"
    CONFIRM            = "confirm"


class RuntimeContext:
    """
    One engine instance: state, components, executor and journal.

    Every state-changing method goes through the executor and returns a
    TransactionResult; every read accessor reads EngineState directly.
    """

    def __init__(
        self,
        capability:    LocalCapability,
        signing_key:   Ed25519KeyManager,
        clock:         Optional[Clock] = None,
        period_length: int = DAY_SECONDS,
        journal_path:  Optional[Path] = None,
    ):
        self.capability    = capability
        self.signing_key   = signing_key
        self.clock         = clock or SystemClock()
        self.period_length = period_length

        self.state      = EngineState()
        self.access     = AccessControl(self.state)
        self.references = ReferenceRegistry(self.state, self.access)
        self.forecasts  = ForecastRegistry(self.state, capability)
        self.rewards    = RewardsLedger(self.state, capability)
        self.settlement = SettlementEngine(
            self.state, capability, self.references, self.forecasts, self.rewards,
        )

        self.journal  = Journal(journal_path, signing_key)
        self.executor = TransactionExecutor(
            self.state, capability, self.clock, self.journal, period_length,
        )
        self.executor.register(Command.DEPLOY, self._deploy)
        self.executor.register(Command.TRANSFER_OWNERSHIP, self._transfer_ownership)
        self.executor.register(Command.RECORD_REFERENCE, self._record_reference)
        self.executor.register(Command.SUBMIT_FORECAST, self._submit_forecast)
        self.executor.register(Command.CONFIRM, self._confirm)

        if len(self.journal):
            self._replay()

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        clock:  Optional[Clock] = None,
    ) -> "RuntimeContext":
        """
        Build a runtime from configuration, creating keys on first use.

        A fresh journal gets its deploy transaction immediately, with the
        configured owner as the deploying caller.
        """
        if config.signing_key_path and config.signing_key_path.exists():
            signing_key = Ed25519KeyManager.from_file(config.signing_key_path)
        else:
            signing_key = Ed25519KeyManager.generate()
            if config.signing_key_path:
                signing_key.save(config.signing_key_path)

        if config.capability_key_path and config.capability_key_path.exists():
            capability = LocalCapability.from_file(
                config.capability_key_path, config.engine_account
            )
        else:
            capability = LocalCapability.generate(config.engine_account)
            if config.capability_key_path:
                capability.save(config.capability_key_path)

        runtime = cls(
            capability=    capability,
            signing_key=   signing_key,
            clock=         clock,
            period_length= config.period_length,
            journal_path=  config.journal_path,
        )
        if runtime.state.owner is None:
            runtime.deploy(config.owner)
        return runtime

    @property
    def engine_account(self) -> str:
        return self.capability.engine_account

    # ── Invocation surface ────────────────────────────────────

    def deploy(self, owner: str) -> TransactionResult:
        return self.executor.execute(owner, Command.DEPLOY, {})

    def transfer_ownership(self, caller: str, new_owner: str) -> TransactionResult:
        return self.executor.execute(
            caller, Command.TRANSFER_OWNERSHIP, {"new_owner": new_owner},
        )

    def record_reference(self, caller: str, value: int) -> TransactionResult:
        return self.executor.execute(
            caller, Command.RECORD_REFERENCE, {"value": str(int(value))},
        )

    def submit_forecast(
        self,
        caller:              str,
        encrypted_target:    ExternalValue,
        encrypted_direction: ExternalValue,
        proof:               str,
        stake:               int,
    ) -> TransactionResult:
        return self.executor.execute(
            caller,
            Command.SUBMIT_FORECAST,
            {
                "target":    encrypted_target.to_dict(),
                "direction": encrypted_direction.to_dict(),
                "proof":     proof,
                "stake":     str(int(stake)),
            },
        )

    def confirm(self, caller: str, period: int) -> TransactionResult:
        return self.executor.execute(caller, Command.CONFIRM, {"period": int(period)})

    # ── Read accessors ────────────────────────────────────────

    @property
    def owner(self) -> Optional[str]:
        return self.state.owner

    def current_period(self) -> int:
        """Period of the next transaction, as the executor would stamp it."""
        now = max(self.clock.now(), self.executor.last_timestamp)
        return period_of(now, self.period_length)

    def get_reference(self, period: int) -> ReferenceRecord:
        return self.references.get(period)

    def get_latest_reference(self) -> Tuple[int, int, int]:
        return self.references.latest()

    def get_metadata(self, account: str, period: int) -> Tuple[int, int, bool]:
        return self.forecasts.metadata(account, period)

    def get_encrypted(self, account: str, period: int) -> Tuple[str, str]:
        return self.forecasts.encrypted(account, period)

    def get_points(self, account: str) -> str:
        return self.rewards.points(account)

    def get_last_outcome(self, account: str) -> str:
        return self.rewards.last_outcome(account)

    # ── Handlers (wire args in, Notification out) ─────────────

    def _deploy(self, tx):
        return self.access.initialize(tx)

    def _transfer_ownership(self, tx, new_owner):
        return self.access.transfer_ownership(tx, new_owner)

    def _record_reference(self, tx, value):
        return self.references.record(tx, int(value))

    def _submit_forecast(self, tx, target, direction, proof, stake):
        return self.forecasts.submit(
            tx,
            ExternalValue.from_dict(target),
            ExternalValue.from_dict(direction),
            proof,
            int(stake),
        )

    def _confirm(self, tx, period):
        return self.settlement.confirm(tx, int(period))

    # ── Replay ────────────────────────────────────────────────

    def _replay(self) -> None:
        """
        Rebuild state by re-executing every journaled transaction.

        Each entry runs at its recorded timestamp and must reproduce its
        recorded notification; anything else means the journal and the
        engine disagree and the runtime refuses to start.
        """
        self.journal.verify_or_raise()

        for entry in self.journal.entries:
            try:
                result = self.executor.execute(
                    entry.caller,
                    entry.command,
                    entry.args,
                    timestamp= entry.timestamp,
                    journaled= False,
                )
            except JournalError:
                raise
            except (ConfidentialCastError, ValueError, TypeError) as exc:
                raise JournalError(
                    f"Journal entry {entry.sequence} no longer applies: {exc}",
                    {"command": entry.command},
                ) from exc

            if result.notification != Notification.from_dict(entry.notification):
                raise JournalError(
                    f"Replay diverged at journal entry {entry.sequence}",
                    {"command": entry.command},
                )

        logger.info("Replayed %d journal entries", len(self.journal))


def in_memory_runtime(
    owner:          str,
    engine_account: str = "0xc0ffee0000000000000000000000000000000001",
    clock:          Optional[Clock] = None,
    period_length:  int = DAY_SECONDS,
) -> RuntimeContext:
    """Deployed runtime with fresh keys and no journal file."""
    runtime = RuntimeContext(
        capability=    LocalCapability.generate(engine_account),
        signing_key=   Ed25519KeyManager.generate(),
        clock=         clock or ManualClock(),
        period_length= period_length,
    )
    runtime.deploy(owner)
    return runtime
