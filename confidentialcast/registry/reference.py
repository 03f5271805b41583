"""
Reference registry: one authoritative plaintext value per period.
"""

import logging
from typing import Tuple

from confidentialcast.access.control import AccessControl
from confidentialcast.core.exceptions import InvalidPrice, PriceAlreadyUpdated
from confidentialcast.core.models import (
    UINT64_MAX,
    Notification,
    NotificationType,
    ReferenceRecord,
)
from confidentialcast.core.state import EngineState, Transaction

logger = logging.getLogger(__name__)


class ReferenceRegistry:
    """Append-only, owner-written, at most one record per period."""

    def __init__(self, state: EngineState, access: AccessControl):
        self.state  = state
        self.access = access

    def record(self, tx: Transaction, value: int) -> Notification:
        self.access.require_owner(tx)

        value = int(value)
        if value == 0:
            raise InvalidPrice("Reference value must be non-zero")
        if not 0 < value <= UINT64_MAX:
            raise InvalidPrice("Reference value must fit in uint64", {"value": value})

        period = tx.period
        if period <= self.state.last_recorded_period:
            raise PriceAlreadyUpdated(
                "Reference already recorded for this or a later period",
                {"period": period, "last_recorded_period": self.state.last_recorded_period},
            )

        self.state.references[period]   = ReferenceRecord(value=value, recorded_at=tx.timestamp)
        self.state.last_recorded_period = period

        logger.info("Reference recorded for period %d: %d", period, value)
        return Notification(
            NotificationType.REFERENCE_RECORDED,
            {"period": period, "value": str(value), "timestamp": tx.timestamp},
        )

    def get(self, period: int) -> ReferenceRecord:
        """Zero record when absent; check `.exists`."""
        return self.state.references.get(int(period), ReferenceRecord())

    def latest(self) -> Tuple[int, int, int]:
        """(last_recorded_period, value, recorded_at); zeros before the first write."""
        period = self.state.last_recorded_period
        record = self.get(period)
        return (period, record.value, record.recorded_at)
