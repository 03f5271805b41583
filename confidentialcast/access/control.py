"""
Single-owner access control.
"""

import logging

from confidentialcast.core.exceptions import InvalidOwner, OnlyOwner
from confidentialcast.core.models import (
    Notification,
    NotificationType,
    is_null_account,
    normalize_account,
)
from confidentialcast.core.state import EngineState, Transaction

logger = logging.getLogger(__name__)


class AccessControl:
    """
    Tracks the owner in EngineState and gates privileged operations.

    The owner is set exactly once, by initialize(), from the deploying
    caller, and afterwards only changes through transfer_ownership().
    """

    def __init__(self, state: EngineState):
        self.state = state

    @property
    def owner(self) -> str:
        return self.state.owner

    def initialize(self, tx: Transaction) -> Notification:
        if self.state.owner is not None:
            raise OnlyOwner("Engine is already initialized", {"owner": self.state.owner})
        if is_null_account(tx.caller):
            raise InvalidOwner("Deployer cannot be the null account")

        self.state.owner = tx.caller
        logger.info("Engine initialized, owner=%s", tx.caller)
        return Notification(NotificationType.DEPLOYED, {"owner": tx.caller})

    def require_owner(self, tx: Transaction) -> None:
        if self.state.owner is None or tx.caller != self.state.owner:
            raise OnlyOwner(
                "Caller is not the owner",
                {"caller": tx.caller},
            )

    def transfer_ownership(self, tx: Transaction, new_owner: str) -> Notification:
        self.require_owner(tx)
        if is_null_account(new_owner):
            raise InvalidOwner("New owner cannot be the null account")
        new_owner = normalize_account(new_owner)

        previous = self.state.owner
        self.state.owner = new_owner
        logger.info("Ownership transferred %s -> %s", previous, new_owner)
        return Notification(
            NotificationType.OWNERSHIP_TRANSFERRED,
            {"previous_owner": previous, "new_owner": new_owner},
        )
