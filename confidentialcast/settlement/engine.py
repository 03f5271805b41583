"""
Settlement engine for confirming forecasts against recorded references.
"""

import logging

from confidentialcast.capability.base import (
    SecureValue,
    SecureValueCapability,
    ValueType,
)
from confidentialcast.core.exceptions import (
    ConfirmationTooEarly,
    PredictionAlreadyClaimed,
    PredictionMissing,
    PriceNotAvailable,
)
from confidentialcast.core.models import (
    Direction,
    Notification,
    NotificationType,
)
from confidentialcast.core.state import EngineState, Transaction
from confidentialcast.ledger.rewards import RewardsLedger
from confidentialcast.registry.forecast import ForecastRegistry
from confidentialcast.registry.reference import ReferenceRegistry

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Oblivious decisions
# Each returns an encrypted value. None of them may branch on a
# secret; plaintext inputs (reference value, stake) are public.
# ─────────────────────────────────────────────────────────────

def forecast_won(
    capability:      SecureValueCapability,
    reference_value: int,
    target:          SecureValue,
    direction:       SecureValue,
) -> SecureValue:
    """
    Encrypted bool: the forecast called the side of the target that the
    reference landed on. reference == target is a loss for both
    directions, and a direction outside {ABOVE, BELOW} never wins.
    """
    is_above    = capability.gt(reference_value, target)
    is_below    = capability.lt(reference_value, target)
    wants_above = capability.eq(direction, Direction.ABOVE)
    wants_below = capability.eq(direction, Direction.BELOW)
    return capability.or_(
        capability.and_(wants_above, is_above),
        capability.and_(wants_below, is_below),
    )


def reward_for(
    capability: SecureValueCapability,
    won:        SecureValue,
    stake:      int,
) -> SecureValue:
    """Encrypted stake if won, encrypted zero otherwise."""
    return capability.select(
        won,
        capability.as_encrypted(stake, ValueType.EUINT64),
        capability.as_encrypted(0, ValueType.EUINT64),
    )


class SettlementEngine:
    """
    Confirms one (account, period) forecast exactly once.

    Eligibility checks run in a fixed order and all of them read only
    public state: the forecast's existence, its settled flag, the period
    boundary and the reference registry. Only after every check passes
    does the engine touch encrypted values.
    """

    def __init__(
        self,
        state:      EngineState,
        capability: SecureValueCapability,
        references: ReferenceRegistry,
        forecasts:  ForecastRegistry,
        rewards:    RewardsLedger,
    ):
        self.state      = state
        self.capability = capability
        self.references = references
        self.forecasts  = forecasts
        self.rewards    = rewards

    def confirm(self, tx: Transaction, period: int) -> Notification:
        """
        Settle the caller's forecast for `period`.

        Raises:
            PredictionMissing:        no forecast for (caller, period)
            PredictionAlreadyClaimed: already settled
            ConfirmationTooEarly:     period has not fully elapsed
            PriceNotAvailable:        no reference recorded for period
        """
        period  = int(period)
        account = tx.caller

        forecast = self.forecasts.find(account, period)
        if forecast is None:
            raise PredictionMissing(
                "No forecast to confirm",
                {"account": account, "period": period},
            )
        if forecast.settled:
            raise PredictionAlreadyClaimed(
                "Forecast already settled",
                {"account": account, "period": period},
            )
        if period >= tx.period:
            raise ConfirmationTooEarly(
                "Period has not ended yet",
                {"period": period, "current_period": tx.period},
            )

        reference = self.references.get(period)
        if not reference.exists:
            raise PriceNotAvailable(
                "No reference recorded for period",
                {"period": period},
            )

        won = forecast_won(
            self.capability,
            reference.value,
            self.capability.lookup(forecast.encrypted_target),
            self.capability.lookup(forecast.encrypted_direction),
        )
        reward = reward_for(self.capability, won, forecast.stake)

        self.rewards.credit(account, reward, won)
        forecast.settled = True

        logger.info("Forecast confirmed for %s, period %d", account, period)
        return Notification(
            NotificationType.FORECAST_CONFIRMED,
            {"account": account, "period": period, "stake": str(forecast.stake)},
        )

    def get_settlement_stats(self) -> dict:
        """
        Public counters over all forecasts.

        Returns:
            Dict with forecast counts and total plaintext stake
        """
        forecasts = [f for f in self.state.forecasts.values() if f.stake > 0]
        settled   = [f for f in forecasts if f.settled]
        return {
            "total":       len(forecasts),
            "settled":     len(settled),
            "pending":     len(forecasts) - len(settled),
            "total_stake": sum(f.stake for f in forecasts),
        }
