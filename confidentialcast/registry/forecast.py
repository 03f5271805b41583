"""
Forecast registry: one encrypted forecast per (account, period).
"""

import logging
from typing import Optional, Tuple

from confidentialcast.capability.base import (
    ExternalValue,
    SecureValueCapability,
    ValueType,
)
from confidentialcast.core.exceptions import (
    PredictionExists,
    StakeRequired,
    StakeTooLarge,
)
from confidentialcast.core.models import (
    UINT64_MAX,
    ZERO_HANDLE,
    Forecast,
    Notification,
    NotificationType,
    normalize_account,
)
from confidentialcast.core.state import EngineState, Transaction

logger = logging.getLogger(__name__)


class ForecastRegistry:
    """
    Accepts encrypted forecasts with a plaintext stake.

    Submission does not depend on the reference registry; a forecast can
    be made for a period whose reference will only be recorded later.
    """

    def __init__(self, state: EngineState, capability: SecureValueCapability):
        self.state      = state
        self.capability = capability

    def submit(
        self,
        tx:                  Transaction,
        encrypted_target:    ExternalValue,
        encrypted_direction: ExternalValue,
        proof:               str,
        stake:               int,
    ) -> Notification:
        stake = int(stake)
        if stake <= 0:
            raise StakeRequired("Stake must be greater than zero", {"stake": stake})
        if stake > UINT64_MAX:
            raise StakeTooLarge("Stake does not fit in uint64", {"stake": stake})

        period = tx.period
        key    = (tx.caller, period)
        if self.find(tx.caller, period) is not None:
            raise PredictionExists(
                "Forecast already submitted for this period",
                {"account": tx.caller, "period": period},
            )

        target = self.capability.from_external_input(
            encrypted_target, proof, tx.caller, ValueType.EUINT64
        )
        direction = self.capability.from_external_input(
            encrypted_direction, proof, tx.caller, ValueType.EUINT8
        )

        self.state.forecasts[key] = Forecast(
            encrypted_target=    target.handle,
            encrypted_direction= direction.handle,
            stake=               stake,
            submitted_at=        tx.timestamp,
        )

        for value in (target, direction):
            self.capability.allow_this(value)
            self.capability.allow(value, tx.caller)

        logger.info(
            "Forecast submitted by %s for period %d, stake=%d",
            tx.caller, period, stake,
        )
        return Notification(
            NotificationType.FORECAST_SUBMITTED,
            {
                "account":   tx.caller,
                "period":    period,
                "stake":     str(stake),
                "timestamp": tx.timestamp,
            },
        )

    def find(self, account: str, period: int) -> Optional[Forecast]:
        """The stored forecast, or None when no stake was ever placed."""
        forecast = self.state.forecasts.get((normalize_account(account), int(period)))
        if forecast is None or forecast.stake == 0:
            return None
        return forecast

    def metadata(self, account: str, period: int) -> Tuple[int, int, bool]:
        """(stake, submitted_at, settled); zeros when absent."""
        forecast = self.find(account, period)
        if forecast is None:
            return (0, 0, False)
        return forecast.metadata()

    def encrypted(self, account: str, period: int) -> Tuple[str, str]:
        """(target handle, direction handle); ZERO_HANDLE pair when absent."""
        forecast = self.find(account, period)
        if forecast is None:
            return (ZERO_HANDLE, ZERO_HANDLE)
        return (forecast.encrypted_target, forecast.encrypted_direction)
