"""
ConfidentialCast Settlement Engine

The Settlement Engine reconciles:
- a Forecast (what the account predicted, encrypted)
- a ReferenceRecord (what actually happened, plaintext)

Critical Invariants:
- A forecast is settled at most once
- No forecast is settled before its period has fully elapsed
- Win/lose and the reward are computed only as encrypted values
- Points are only ever credited, never debited
"""

from confidentialcast.settlement.engine import (
    SettlementEngine,
    forecast_won,
    reward_for,
)

__all__ = ["SettlementEngine", "forecast_won", "reward_for"]
