"""
charter_engines.rounding -- Named rounding presets.

Each call site that rounds names the preset it uses instead of relying on
a silent per-function default. Two percentage-change presets coexist
because dashboards historically showed both one and two fractional digits;
neither is privileged.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from charter_kernel.domain.values import MonetaryAmount, quantize
from charter_kernel.exceptions import InvalidRoundingPresetError


@dataclass(frozen=True)
class RoundingPreset:
    """A named (places, rounding mode) pair."""

    name: str
    places: int
    rounding: str = ROUND_HALF_UP

    def __post_init__(self) -> None:
        if self.places < 0:
            raise ValueError("places cannot be negative")

    def quantize(self, value: Decimal) -> Decimal:
        return quantize(value, self.places, self.rounding)

    def render(self, value: Decimal) -> str:
        """Fixed-point text with exactly ``places`` fractional digits."""
        return format(self.quantize(value), "f")

    def apply(self, amount: MonetaryAmount) -> MonetaryAmount:
        return amount.round(self.places, self.rounding)

    def to_number(self, amount: MonetaryAmount) -> float:
        return amount.to_number(self.places, self.rounding)


CURRENCY = RoundingPreset("currency", 2)
RATIO = RoundingPreset("ratio", 8)
MARGIN_PERCENT = RoundingPreset("margin_percent", 2)
PERCENT_CHANGE_ONE_PLACE = RoundingPreset("percent_change_one_place", 1)
PERCENT_CHANGE_TWO_PLACES = RoundingPreset("percent_change_two_places", 2)

PRESETS: dict[str, RoundingPreset] = {
    p.name: p
    for p in (
        CURRENCY,
        RATIO,
        MARGIN_PERCENT,
        PERCENT_CHANGE_ONE_PLACE,
        PERCENT_CHANGE_TWO_PLACES,
    )
}


def preset_by_name(name: str) -> RoundingPreset:
    """
    Resolve a registered preset.

    Raises:
        InvalidRoundingPresetError: If ``name`` is not registered.
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise InvalidRoundingPresetError(name, tuple(sorted(PRESETS))) from None
