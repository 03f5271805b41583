"""
Rewards ledger: per-account encrypted points and last outcome.
"""

import logging

from confidentialcast.capability.base import (
    SecureValue,
    SecureValueCapability,
    ValueType,
)
from confidentialcast.core.models import ZERO_HANDLE, normalize_account
from confidentialcast.core.state import EngineState

logger = logging.getLogger(__name__)


class RewardsLedger:
    """
    credit() adds an encrypted amount to the account's points, which is an
    encrypted zero for a losing forecast. Points never decrease except by
    wrapping: the sum is taken modulo 2**64, like every euint64 addition.
    last_outcome is overwritten on every credit. Entries are created on an
    account's first settlement.
    """

    def __init__(self, state: EngineState, capability: SecureValueCapability):
        self.state      = state
        self.capability = capability

    def credit(self, account: str, reward: SecureValue, won: SecureValue) -> None:
        account = normalize_account(account)
        current = self.state.points.get(account)
        if current is None:
            balance = self.capability.as_encrypted(0, ValueType.EUINT64)
        else:
            balance = self.capability.lookup(current)

        points = self.capability.add(balance, reward)

        self.state.points[account]       = points.handle
        self.state.last_outcome[account] = won.handle

        for value in (points, won):
            self.capability.allow_this(value)
            self.capability.allow(value, account)

        logger.debug("Rewards updated for %s: points=%s", account, points.handle[:18])

    def points(self, account: str) -> str:
        return self.state.points.get(normalize_account(account), ZERO_HANDLE)

    def last_outcome(self, account: str) -> str:
        return self.state.last_outcome.get(normalize_account(account), ZERO_HANDLE)
