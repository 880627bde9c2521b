"""
charter_engines.booking_profit -- Per-booking profit against its expense sheet.

Responsibility:
    Match a booking with the expense sheet recorded for that charter and
    compute revenue, owner payments, operational expenses, net profit and
    margin; aggregate those figures over many bookings; classify a margin
    into a display tier.

Architecture position:
    Engines -- pure calculation layer, zero I/O. Works on raw mappings so
    the expense-sheet fields (``suma1``, ``skipperCost``...) need no
    dedicated record type.

Invariants enforced:
    - Every amount goes through ``normalize_amount``; unparseable fields
      count as zero.
    - The margin is exact zero when revenue is zero, and 100.00 when a
      booking has revenue but no matched expense sheet.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from enum import Enum
from typing import Any

from charter_kernel.domain.values import MonetaryAmount, exact_context, sum_amounts
from charter_kernel.logging_config import get_logger
from charter_engines.metrics import profit_margin
from charter_engines.normalizer import normalize_amount
from charter_engines.rounding import MARGIN_PERCENT

logger = get_logger("engines.booking_profit")

OWNER_PAYMENT_FIELDS = ("suma1", "suma2", "sumaIntegral")
OPERATIONAL_FIELDS = (
    "skipperCost",
    "transferCost",
    "fuelCost",
    "boatExpense",
    "comisioane",
    "colaboratori",
)


class ProfitTier(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    LOW = "low"
    LOSS = "loss"


_TIER_FLOORS: tuple[tuple[Decimal, ProfitTier], ...] = (
    (Decimal("30"), ProfitTier.EXCELLENT),
    (Decimal("15"), ProfitTier.GOOD),
    (Decimal("5"), ProfitTier.FAIR),
    (Decimal("0"), ProfitTier.LOW),
)


@dataclass(frozen=True)
class BookingProfit:
    booking_id: str | None
    revenue: MonetaryAmount
    owner_payments: MonetaryAmount
    operational_expenses: MonetaryAmount
    net_profit: MonetaryAmount
    profit_margin: Decimal
    has_expense_data: bool
    breakdown: dict[str, MonetaryAmount] = field(default_factory=dict, compare=False)

    @property
    def expenses(self) -> MonetaryAmount:
        return self.owner_payments + self.operational_expenses


@dataclass(frozen=True)
class AggregatedProfit:
    total_revenue: MonetaryAmount
    total_owner_payments: MonetaryAmount
    total_operational_expenses: MonetaryAmount
    total_net_profit: MonetaryAmount
    average_profit_margin: Decimal
    booking_count: int
    bookings_with_expenses: int

    @property
    def total_expenses(self) -> MonetaryAmount:
        return self.total_owner_payments + self.total_operational_expenses

    @property
    def bookings_without_expenses(self) -> int:
        return self.booking_count - self.bookings_with_expenses


def _booking_revenue(booking: Mapping[str, Any]) -> MonetaryAmount:
    pricing = booking.get("pricing")
    if not isinstance(pricing, Mapping):
        return MonetaryAmount.zero()
    agreed = normalize_amount(pricing.get("agreedPrice"))
    if not agreed.is_zero:
        return agreed
    return normalize_amount(pricing.get("finalPrice"))


def calculate_booking_profit(
    booking: Mapping[str, Any],
    expense: Mapping[str, Any] | None = None,
) -> BookingProfit:
    """
    Profit of one booking given its (optional) expense sheet.

    Without an expense sheet all costs are zero and ``has_expense_data``
    is False.
    """
    revenue = _booking_revenue(booking)
    sheet = expense if isinstance(expense, Mapping) else {}

    breakdown = {
        name: normalize_amount(sheet.get(name))
        for name in OWNER_PAYMENT_FIELDS + OPERATIONAL_FIELDS
    }
    owner_payments = sum_amounts(breakdown[name] for name in OWNER_PAYMENT_FIELDS)
    operational = sum_amounts(breakdown[name] for name in OPERATIONAL_FIELDS)
    margin = profit_margin(revenue, owner_payments + operational, MARGIN_PERCENT)

    booking_id = booking.get("id")
    return BookingProfit(
        booking_id=None if booking_id in (None, "") else str(booking_id),
        revenue=revenue,
        owner_payments=owner_payments,
        operational_expenses=operational,
        net_profit=margin.net_profit,
        profit_margin=margin.margin_percentage,
        has_expense_data=isinstance(expense, Mapping),
        breakdown=breakdown,
    )


def find_matching_expense(
    booking: Mapping[str, Any],
    expenses: Iterable[Mapping[str, Any]],
) -> Mapping[str, Any] | None:
    """
    Expense sheet for a booking: by ``bookingId`` first, else by charter
    date plus case-insensitive boat name.
    """
    candidates = [e for e in expenses if isinstance(e, Mapping)]
    if not candidates:
        return None

    booking_id = booking.get("id")
    if booking_id not in (None, ""):
        for expense in candidates:
            if expense.get("bookingId") is not None and str(expense.get("bookingId")) == str(booking_id):
                return expense

    details = booking.get("bookingDetails")
    details = details if isinstance(details, Mapping) else {}
    booking_date = details.get("date")
    boat_name = details.get("boatName")
    if not booking_date or not isinstance(boat_name, str):
        return None

    for expense in candidates:
        expense_date = expense.get("data") or expense.get("dataCompanie")
        expense_boat = expense.get("numeleBarci")
        if (
            expense_date == booking_date
            and isinstance(expense_boat, str)
            and expense_boat.lower() == boat_name.lower()
        ):
            logger.debug("expense_matched_by_date", extra={
                "booking_id": booking_id,
                "boat_name": boat_name,
            })
            return expense
    return None


def calculate_aggregated_profit(
    pairs: Iterable[tuple[Mapping[str, Any], Mapping[str, Any] | None]],
) -> AggregatedProfit:
    """
    Totals over (booking, expense) pairs; the average margin only covers
    bookings with expense data.
    """
    profits = [calculate_booking_profit(booking, expense) for booking, expense in pairs]
    with_data = [p for p in profits if p.has_expense_data]

    if with_data:
        margins = [p.profit_margin for p in with_data]
        count = Decimal(len(margins))
        with localcontext(exact_context(*margins, count)):
            mean = sum(margins, Decimal("0")) / count
        average = MARGIN_PERCENT.quantize(mean)
    else:
        average = MARGIN_PERCENT.quantize(Decimal("0"))

    return AggregatedProfit(
        total_revenue=sum_amounts(p.revenue for p in profits),
        total_owner_payments=sum_amounts(p.owner_payments for p in profits),
        total_operational_expenses=sum_amounts(p.operational_expenses for p in profits),
        total_net_profit=sum_amounts(p.net_profit for p in profits),
        average_profit_margin=average,
        booking_count=len(profits),
        bookings_with_expenses=len(with_data),
    )


def classify_profit_margin(margin: Any) -> ProfitTier:
    value = normalize_amount(margin).value
    for floor, tier in _TIER_FLOORS:
        if value >= floor:
            return tier
    return ProfitTier.LOSS
