"""Rate Policy — per-hour rates from settings, resolved slot -> zone -> lot default.

Invariants:
    - rate_for never fails: unknown locations fall back to the lot default
    - Rates are Decimal, quantized to cents, never negative

Design Decisions:
    - Zone is the text before the first "-" of a slot id ("A-23" -> "A"), the
      naming the lot signage uses
    - Lookups are case-insensitive; keys normalized once at construction
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping

from parkledger.config import Settings
from parkledger.core.billing import CENT, to_decimal


def _as_rate(value) -> Decimal:
    rate = to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    if rate < 0:
        raise ValueError(f"rate cannot be negative: {value}")
    return rate


class SettingsRatePolicy:
    """RatePolicy backed by a mapping of slot/zone overrides and a default."""

    def __init__(self, default_rate, overrides: Mapping[str, object] | None = None):
        self.default_rate = _as_rate(default_rate)
        self._overrides = {
            key.strip().upper(): _as_rate(rate)
            for key, rate in (overrides or {}).items()
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "SettingsRatePolicy":
        return cls(settings.default_rate_per_hour, settings.location_rates)

    def rate_for(self, location: str) -> Decimal:
        slot = location.strip().upper()
        if slot in self._overrides:
            return self._overrides[slot]
        zone = slot.split("-", 1)[0]
        return self._overrides.get(zone, self.default_rate)
