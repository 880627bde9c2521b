"""
charter_engines.metrics -- Derived ratios: percentage change and profit margin.

Responsibility:
    Pure, guarded ratio functions used by the reconciliation report and the
    dashboard's period-over-period comparison.

Invariants enforced:
    - No ratio ever faults or yields NaN/Infinity: a zero (or near-zero,
      for percentage change) denominator returns a defined zero.
    - Magnitudes are rounded through an explicitly named preset.

Usage:
    from charter_engines.metrics import percentage_change, profit_margin

    change = percentage_change(current="1100", previous="1000")
    change.display_value        # "+10.0%"

    margin = profit_margin(income=1000, expenses=300)
    margin.margin_percentage    # Decimal("70.00")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Any

from charter_kernel.domain.values import MonetaryAmount, exact_context
from charter_engines.normalizer import normalize_amount
from charter_engines.rounding import (
    MARGIN_PERCENT,
    PERCENT_CHANGE_ONE_PLACE,
    RATIO,
    RoundingPreset,
)

# Previous values below this magnitude are treated as zero
NEAR_ZERO = Decimal("0.00001")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PercentageChange:
    """Unsigned magnitude of a change plus its direction."""

    value: Decimal
    is_increase: bool
    display_value: str

    @classmethod
    def zero(cls) -> PercentageChange:
        return cls(value=Decimal("0"), is_increase=False, display_value="0%")

    @property
    def raw_value(self) -> float:
        return float(self.value)


@dataclass(frozen=True)
class ProfitMargin:
    income: MonetaryAmount
    expenses: MonetaryAmount
    net_profit: MonetaryAmount
    margin_percentage: Decimal
    display_value: str

    @property
    def is_positive(self) -> bool:
        return self.margin_percentage >= 0


def percentage_change(
    current: Any,
    previous: Any,
    preset: RoundingPreset = PERCENT_CHANGE_ONE_PLACE,
) -> PercentageChange:
    """
    Relative change from ``previous`` to ``current`` in percent.

    Postconditions:
        - Returns the zero sentinel when |previous| < 0.00001.
        - Otherwise ``value`` is |current - previous| / |previous| * 100
          rounded by ``preset``; the sign is carried by ``is_increase``.
    """
    cur = normalize_amount(current).value
    prev = normalize_amount(previous).value

    if prev.copy_abs() < NEAR_ZERO:
        return PercentageChange.zero()

    with localcontext(exact_context(cur, prev, _HUNDRED)):
        change = (cur - prev) / abs(prev) * _HUNDRED
    magnitude = preset.quantize(change.copy_abs())
    is_increase = change >= 0

    return PercentageChange(
        value=magnitude,
        is_increase=is_increase,
        display_value=f"{'+' if is_increase else '-'}{preset.render(magnitude)}%",
    )


def profit_margin(
    income: Any,
    expenses: Any,
    preset: RoundingPreset = MARGIN_PERCENT,
) -> ProfitMargin:
    """
    Net profit and margin percentage; the margin is exact zero when income is zero.
    """
    income_amount = normalize_amount(income)
    expense_amount = normalize_amount(expenses)
    net_profit = income_amount - expense_amount

    if income_amount.is_zero:
        margin = preset.quantize(Decimal("0"))
    else:
        with localcontext(exact_context(net_profit.value, income_amount.value, _HUNDRED)):
            ratio = net_profit.value / income_amount.value * _HUNDRED
        margin = preset.quantize(ratio)

    return ProfitMargin(
        income=income_amount,
        expenses=expense_amount,
        net_profit=net_profit,
        margin_percentage=margin,
        display_value=f"{preset.render(margin)}%",
    )


def safe_divide(
    numerator: Any,
    denominator: Any,
    preset: RoundingPreset = RATIO,
) -> MonetaryAmount:
    """Quotient rounded by ``preset``; exact zero when the denominator is zero."""
    divisor = normalize_amount(denominator)
    if divisor.is_zero:
        return MonetaryAmount.zero()
    return normalize_amount(numerator).divide(divisor, places=preset.places, rounding=preset.rounding)


def percentage(
    value: Any,
    total: Any,
    preset: RoundingPreset = MARGIN_PERCENT,
) -> Decimal:
    """``value`` as a percentage of ``total``; exact zero when total is zero."""
    divisor = normalize_amount(total)
    if divisor.is_zero:
        return preset.quantize(Decimal("0"))
    numerator = normalize_amount(value).value
    with localcontext(exact_context(numerator, divisor.value, _HUNDRED)):
        ratio = numerator / divisor.value * _HUNDRED
    return preset.quantize(ratio)
