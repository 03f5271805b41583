"""
Engine state and per-transaction context.

EngineState is the entire durable state of the engine: two scalars and
four keyed mappings. It is created once at startup and handed to every
component; nothing in the engine keeps module-level state.
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from confidentialcast.core.models import Forecast, ReferenceRecord, normalize_account
from confidentialcast.core.time import DAY_SECONDS, period_of


@dataclass
class EngineState:
    owner:                Optional[str] = None
    last_recorded_period: int           = 0

    references:   Dict[int, ReferenceRecord]        = field(default_factory=dict)
    forecasts:    Dict[Tuple[str, int], Forecast]   = field(default_factory=dict)
    points:       Dict[str, str]                    = field(default_factory=dict)
    last_outcome: Dict[str, str]                    = field(default_factory=dict)

    def snapshot(self) -> "EngineState":
        return copy.deepcopy(self)

    def restore(self, snapshot: "EngineState") -> None:
        """Overwrite this instance in place; components keep their reference."""
        restored = copy.deepcopy(snapshot)
        self.owner                = restored.owner
        self.last_recorded_period = restored.last_recorded_period
        self.references           = restored.references
        self.forecasts            = restored.forecasts
        self.points               = restored.points
        self.last_outcome         = restored.last_outcome


@dataclass(frozen=True)
class Transaction:
    """Who is calling (normalized account) and at what point in the total order."""
    caller:        str
    timestamp:     int
    sequence:      int
    period_length: int = DAY_SECONDS

    def __post_init__(self):
        object.__setattr__(self, "caller", normalize_account(self.caller))

    @property
    def period(self) -> int:
        return period_of(self.timestamp, self.period_length)
