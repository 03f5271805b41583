"""
ConfidentialCast Registries

- ReferenceRegistry: owner-recorded plaintext value per period
- ForecastRegistry:  encrypted forecasts keyed by (account, period)
"""

from confidentialcast.registry.forecast import ForecastRegistry
from confidentialcast.registry.reference import ReferenceRegistry

__all__ = ["ForecastRegistry", "ReferenceRegistry"]
