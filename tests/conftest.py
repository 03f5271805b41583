"""
Shared fixtures.

The clock starts one hour into period 100, so a test can record a
reference and submit forecasts in period 100 and then call
next_period() to make period 100 confirmable.
"""

import pytest

from confidentialcast.core.models import Direction
from confidentialcast.core.time import DAY_SECONDS, ManualClock
from confidentialcast.runtime.context import in_memory_runtime

START_PERIOD = 100

OWNER   = "0x1111111111111111111111111111111111111111"
ALICE   = "0x2222222222222222222222222222222222222222"
BOB     = "0x3333333333333333333333333333333333333333"
MALLORY = "0x4444444444444444444444444444444444444444"
ENGINE  = "0xc0ffee0000000000000000000000000000000001"

ABOVE = Direction.ABOVE
BELOW = Direction.BELOW


@pytest.fixture
def clock():
    return ManualClock(START_PERIOD * DAY_SECONDS + 3600)


@pytest.fixture
def runtime(clock):
    """Deployed in-memory engine owned by OWNER."""
    return in_memory_runtime(owner=OWNER, engine_account=ENGINE, clock=clock)


@pytest.fixture
def next_period(clock):
    """Advance the clock into the following period."""
    def _advance(periods: int = 1):
        clock.advance(periods * DAY_SECONDS)
    return _advance


def encrypt(runtime, account, target, direction):
    """Client-side encryption of a (target, direction) pair for account."""
    return (
        runtime.capability
        .encrypt_input(runtime.engine_account, account)
        .add64(target)
        .add8(direction)
        .encrypt()
    )


def submit(runtime, account, target, direction, stake):
    enc = encrypt(runtime, account, target, direction)
    return runtime.submit_forecast(account, enc[0], enc[1], enc.proof, stake)


def points_of(runtime, account):
    return runtime.capability.user_decrypt(runtime.get_points(account), account)


def last_result_of(runtime, account):
    return runtime.capability.user_decrypt(runtime.get_last_outcome(account), account)
