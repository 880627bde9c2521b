"""
charter_engines.report -- The immutable reconciliation report.

Responsibility:
    Hold the bucket totals and itemized sources produced by one
    reconciliation and expose every derived figure (revenue, costs,
    outstanding, net profit, margin, daily averages) plus rounded number
    mirrors and formatted display strings.

Invariants enforced:
    - Derived figures are computed on read from the stored buckets; the
      profit margin in particular is never stored.
    - Net profit is the only signed figure; every bucket is a magnitude.
    - The report is frozen; every collection in it is a tuple.

Usage:
    report = calculate_company_margin(bookings=..., orders=..., ...)
    report.revenue                  # MonetaryAmount
    report.profit_margin            # Decimal("70.00")
    report.to_numbers()["revenue"]  # 1000.0
    report.display_values()         # {"revenue": "€1,000.00", ...}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal

from charter_kernel.domain.values import MonetaryAmount, sum_amounts
from charter_engines.formatting import (
    DEFAULT_PRESENTATION,
    ReportPresentation,
    format_currency,
    format_percent,
)
from charter_engines.metrics import PercentageChange, ProfitMargin, percentage_change, profit_margin, safe_divide
from charter_engines.records import OwnerPaymentSlotName, PaymentStatus
from charter_engines.rounding import (
    CURRENCY,
    MARGIN_PERCENT,
    PERCENT_CHANGE_ONE_PLACE,
    RATIO,
    RoundingPreset,
)

OWNER_PAYMENTS_CATEGORY = "Owner Payments"

_DAY_MICROSECONDS = 86_400 * 1_000_000


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


@dataclass(frozen=True)
class ReportingPeriod:
    """
    Date range of a reconciliation, used for daily averages.

    Naive datetimes are read as UTC when the other bound is timezone-aware.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = _as_datetime(self.start)
        end = _as_datetime(self.end)
        if (start.tzinfo is None) != (end.tzinfo is None):
            start = start if start.tzinfo else start.replace(tzinfo=timezone.utc)
            end = end if end.tzinfo else end.replace(tzinfo=timezone.utc)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @property
    def days(self) -> int:
        """Whole days spanned, rounded up, never below one."""
        delta = self.end - self.start
        micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
        return max(1, -(-micros // _DAY_MICROSECONDS))


# ---------------------------------------------------------------------------
# Itemized sources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BookingSource:
    id: str | None
    paid: MonetaryAmount
    linked_order_amount: MonetaryAmount
    outstanding: MonetaryAmount
    client_name: str


@dataclass(frozen=True)
class OwnerPaymentLine:
    slot: OwnerPaymentSlotName
    amount: MonetaryAmount
    date: str | None = None


@dataclass(frozen=True)
class OwnerPaymentSource:
    booking_id: str | None
    client_name: str
    boat_name: str
    total_paid: MonetaryAmount
    payments: tuple[OwnerPaymentLine, ...] = ()


@dataclass(frozen=True)
class OrderSource:
    id: str | None
    paid: MonetaryAmount
    outstanding: MonetaryAmount
    status: PaymentStatus


@dataclass(frozen=True)
class ExpenseSource:
    id: str | None
    amount: MonetaryAmount
    category: str


@dataclass(frozen=True)
class OtherPaymentSource:
    id: str | None
    amount: MonetaryAmount
    date: str | None = None


@dataclass(frozen=True)
class ReportSources:
    bookings: tuple[BookingSource, ...] = ()
    owner_payments: tuple[OwnerPaymentSource, ...] = ()
    orders: tuple[OrderSource, ...] = ()
    expenses: tuple[ExpenseSource, ...] = ()
    other_payments: tuple[OtherPaymentSource, ...] = ()


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReconciliationReport:
    """
    Result of one reconciliation call.

    Stored fields are the revenue, outstanding and cost buckets; all
    totals and ratios are derived properties.
    """

    booking_revenue: MonetaryAmount
    order_revenue: MonetaryAmount
    other_revenue: MonetaryAmount
    booking_outstanding: MonetaryAmount
    order_outstanding: MonetaryAmount
    paid_expenses: MonetaryAmount
    owner_payments: MonetaryAmount
    sources: ReportSources = field(default_factory=ReportSources)
    skipped_order_ids: tuple[str, ...] = ()
    period: ReportingPeriod | None = None
    presentation: ReportPresentation = DEFAULT_PRESENTATION

    @property
    def revenue(self) -> MonetaryAmount:
        return self.booking_revenue + self.order_revenue + self.other_revenue

    @property
    def outstanding(self) -> MonetaryAmount:
        return self.booking_outstanding + self.order_outstanding

    @property
    def costs(self) -> MonetaryAmount:
        return self.paid_expenses + self.owner_payments

    @property
    def margin(self) -> ProfitMargin:
        return profit_margin(self.revenue, self.costs, MARGIN_PERCENT)

    @property
    def net_profit(self) -> MonetaryAmount:
        return self.revenue - self.costs

    @property
    def profit_margin(self) -> Decimal:
        return self.margin.margin_percentage

    @property
    def daily_avg_revenue(self) -> MonetaryAmount:
        if self.period is None:
            return MonetaryAmount.zero()
        return safe_divide(self.revenue, self.period.days, RATIO)

    @property
    def daily_avg_expense(self) -> MonetaryAmount:
        if self.period is None:
            return MonetaryAmount.zero()
        return safe_divide(self.costs, self.period.days, RATIO)

    def costs_by_category(self) -> dict[str, MonetaryAmount]:
        """Paid expenses per category plus the owner-payment bucket, in first-seen order."""
        breakdown: dict[str, MonetaryAmount] = {}
        for expense in self.sources.expenses:
            current = breakdown.get(expense.category, MonetaryAmount.zero())
            breakdown[expense.category] = current + expense.amount
        if not self.owner_payments.is_zero:
            current = breakdown.get(OWNER_PAYMENTS_CATEGORY, MonetaryAmount.zero())
            breakdown[OWNER_PAYMENTS_CATEGORY] = current + self.owner_payments
        return breakdown

    def revenue_by_source(self) -> dict[str, MonetaryAmount]:
        return {
            "bookings": self.booking_revenue,
            "orders": self.order_revenue,
            "other": self.other_revenue,
        }

    def to_numbers(self, preset: RoundingPreset = CURRENCY) -> dict[str, float]:
        """Rounded plain-number mirrors for display layers."""
        amounts = {
            "revenue": self.revenue,
            "costs": self.costs,
            "net_profit": self.net_profit,
            "outstanding": self.outstanding,
            "booking_revenue": self.booking_revenue,
            "order_revenue": self.order_revenue,
            "other_revenue": self.other_revenue,
            "booking_outstanding": self.booking_outstanding,
            "order_outstanding": self.order_outstanding,
            "paid_expenses": self.paid_expenses,
            "owner_payments": self.owner_payments,
            "daily_avg_revenue": self.daily_avg_revenue,
            "daily_avg_expense": self.daily_avg_expense,
        }
        numbers = {name: preset.to_number(amount) for name, amount in amounts.items()}
        numbers["profit_margin"] = float(self.profit_margin)
        return numbers

    def display_values(self) -> dict[str, str]:
        """Locale/currency formatted strings for the headline figures."""
        fmt = self.presentation
        return {
            "revenue": format_currency(self.revenue, fmt),
            "costs": format_currency(self.costs, fmt),
            "net_profit": format_currency(self.net_profit, fmt),
            "profit_margin": format_percent(self.profit_margin, MARGIN_PERCENT),
            "outstanding": format_currency(self.outstanding, fmt),
            "owner_payments": format_currency(self.owner_payments, fmt),
        }

    @property
    def linked_order_count(self) -> int:
        return sum(1 for b in self.sources.bookings if not b.linked_order_amount.is_zero)

    @property
    def total_itemized_revenue(self) -> MonetaryAmount:
        """Revenue rebuilt from itemized sources; equals ``revenue`` by construction."""
        return sum_amounts(
            [b.paid + b.linked_order_amount for b in self.sources.bookings]
            + [o.paid for o in self.sources.orders]
            + [p.amount for p in self.sources.other_payments]
        )


def compare_reports(
    current: ReconciliationReport,
    previous: ReconciliationReport,
    preset: RoundingPreset = PERCENT_CHANGE_ONE_PLACE,
) -> dict[str, PercentageChange]:
    """Period-over-period changes of the dashboard headline figures."""
    return {
        "revenue": percentage_change(current.revenue, previous.revenue, preset),
        "costs": percentage_change(current.costs, previous.costs, preset),
        "net_profit": percentage_change(current.net_profit, previous.net_profit, preset),
        "outstanding": percentage_change(current.outstanding, previous.outstanding, preset),
    }
