"""
charter_engines.aggregation -- Company-wide reconciliation as a pure fold.

Responsibility:
    Combine per-record extraction results across bookings, standalone
    orders, expenses and standalone payments into one ReconciliationReport,
    with linked-order deduplication and owner-payment cost attribution.

Architecture position:
    Engines -- pure calculation layer, zero I/O, no clock access.
    The service layer parses raw collections into records and supplies
    the fallback timestamp.

Invariants enforced:
    - Each record maps to an immutable contribution; contributions are
      combined with ``functools.reduce`` over a frozen accumulator. No
      running total is mutated.
    - Booking revenue excludes linked-order money; that money is counted
      once, in the order bucket.
    - A standalone order whose id was reached through any booking's
      linked orders is skipped entirely.
    - Only signed owner-payment slots and ``paid`` expenses are costs.
    - Only standalone payments tied to neither a booking nor an order
      count as other revenue.

Failure modes:
    - None raised for record contents. Shape errors are rejected by the
      service layer before records reach this module.

Audit relevance:
    The report carries itemized sources for every bucket plus the ids of
    skipped duplicate orders, so each total can be traced back to records.

Usage:
    report = calculate_company_margin(
        bookings=bookings, orders=orders, expenses=expenses, payments=payments,
        period=ReportingPeriod(start, end),
    )
"""

from __future__ import annotations

import operator
from collections.abc import Iterable
from dataclasses import dataclass, fields
from datetime import datetime
from functools import reduce

from charter_kernel.domain.values import MonetaryAmount, sum_amounts
from charter_kernel.logging_config import get_logger
from charter_engines.booking_payments import extract_booking_payments
from charter_engines.dedup import LinkedOrderRegistry
from charter_engines.formatting import DEFAULT_PRESENTATION, ReportPresentation
from charter_engines.order_payments import extract_order_payments
from charter_engines.partial_payment import (
    DEFAULT_PARTIAL_PAYMENT_POLICY,
    PartialPaymentPolicy,
)
from charter_engines.records import (
    BookingRecord,
    ExpenseRecord,
    OrderRecord,
    PaymentStatus,
    StandalonePaymentRecord,
)
from charter_engines.report import (
    BookingSource,
    ExpenseSource,
    OrderSource,
    OtherPaymentSource,
    OwnerPaymentLine,
    OwnerPaymentSource,
    ReconciliationReport,
    ReportingPeriod,
    ReportSources,
)
from charter_engines.tracer import traced_engine

logger = get_logger("engines.aggregation")

_ZERO = MonetaryAmount.zero()


@dataclass(frozen=True)
class ReconciliationTotals:
    """
    Immutable fold accumulator; ``+`` adds bucket by bucket.

    The zero instance is the identity of the fold.
    """

    booking_revenue: MonetaryAmount = _ZERO
    order_revenue: MonetaryAmount = _ZERO
    other_revenue: MonetaryAmount = _ZERO
    booking_outstanding: MonetaryAmount = _ZERO
    order_outstanding: MonetaryAmount = _ZERO
    paid_expenses: MonetaryAmount = _ZERO
    owner_payments: MonetaryAmount = _ZERO

    def __add__(self, other: ReconciliationTotals) -> ReconciliationTotals:
        if not isinstance(other, ReconciliationTotals):
            return NotImplemented
        return ReconciliationTotals(**{
            f.name: getattr(self, f.name) + getattr(other, f.name)
            for f in fields(self)
        })


@dataclass(frozen=True)
class BookingContribution:
    totals: ReconciliationTotals
    source: BookingSource
    owner_source: OwnerPaymentSource | None
    linked_order_ids: frozenset[str]


@dataclass(frozen=True)
class OrderContribution:
    totals: ReconciliationTotals
    source: OrderSource


@dataclass(frozen=True)
class ExpenseContribution:
    totals: ReconciliationTotals
    source: ExpenseSource


@dataclass(frozen=True)
class OtherPaymentContribution:
    totals: ReconciliationTotals
    source: OtherPaymentSource


# ---------------------------------------------------------------------------
# Per-record contributions
# ---------------------------------------------------------------------------


def _owner_payments(booking: BookingRecord) -> tuple[MonetaryAmount, OwnerPaymentSource | None]:
    """
    Signed owner-payment total of one booking and its itemized source.

    The total always counts as cost; the source is only itemized when the
    total is positive.
    """
    if booking.owner_payments is None:
        return _ZERO, None
    lines = tuple(
        OwnerPaymentLine(slot=name, amount=slot.amount, date=slot.date)
        for name, slot in booking.owner_payments.signed_slots()
    )
    total = sum_amounts(line.amount for line in lines)
    if not total.is_positive:
        return total, None
    return total, OwnerPaymentSource(
        booking_id=booking.id,
        client_name=booking.client_name,
        boat_name=booking.boat_name,
        total_paid=total,
        payments=lines,
    )


def booking_contribution(
    booking: BookingRecord,
    partial_payment_policy: PartialPaymentPolicy = DEFAULT_PARTIAL_PAYMENT_POLICY,
    fallback_timestamp: datetime | None = None,
) -> BookingContribution:
    """Revenue, outstanding and owner-payment contribution of one booking."""
    extracted = extract_booking_payments(booking, partial_payment_policy, fallback_timestamp)
    linked_received = extracted.linked_order_received
    booking_only = extracted.booking_only_received
    owner_total, owner_source = _owner_payments(booking)

    totals = ReconciliationTotals(
        booking_revenue=booking_only,
        order_revenue=linked_received,
        booking_outstanding=extracted.total_outstanding,
        owner_payments=owner_total,
    )
    source = BookingSource(
        id=booking.id,
        paid=booking_only,
        linked_order_amount=linked_received,
        outstanding=extracted.total_outstanding,
        client_name=booking.client_name,
    )
    return BookingContribution(
        totals=totals,
        source=source,
        owner_source=owner_source,
        linked_order_ids=extracted.linked_order_ids,
    )


def order_contribution(
    order: OrderRecord,
    partial_payment_policy: PartialPaymentPolicy = DEFAULT_PARTIAL_PAYMENT_POLICY,
) -> OrderContribution:
    extracted = extract_order_payments(order, partial_payment_policy)
    return OrderContribution(
        totals=ReconciliationTotals(
            order_revenue=extracted.amount_paid,
            order_outstanding=extracted.amount_due,
        ),
        source=OrderSource(
            id=order.id,
            paid=extracted.amount_paid,
            outstanding=extracted.amount_due,
            status=order.payment_status,
        ),
    )


def expense_contribution(expense: ExpenseRecord) -> ExpenseContribution | None:
    """Cost of a paid expense; None for any other status."""
    if expense.payment_status is not PaymentStatus.PAID:
        return None
    return ExpenseContribution(
        totals=ReconciliationTotals(paid_expenses=expense.amount),
        source=ExpenseSource(id=expense.id, amount=expense.amount, category=expense.category),
    )


def other_payment_contribution(
    payment: StandalonePaymentRecord,
) -> OtherPaymentContribution | None:
    """Revenue of an unattributed standalone payment; None when tied to a booking or order."""
    if not payment.is_unattributed:
        return None
    return OtherPaymentContribution(
        totals=ReconciliationTotals(other_revenue=payment.amount),
        source=OtherPaymentSource(id=payment.id, amount=payment.amount, date=payment.date),
    )


# ---------------------------------------------------------------------------
# Fold
# ---------------------------------------------------------------------------


def fold_totals(parts: Iterable[ReconciliationTotals]) -> ReconciliationTotals:
    """Sum contributions; the order of ``parts`` never changes the result."""
    return reduce(operator.add, parts, ReconciliationTotals())


@traced_engine(
    "reconciliation",
    "1.0",
    fingerprint_fields=("bookings", "orders", "expenses", "payments", "period"),
)
def calculate_company_margin(
    *,
    bookings: Iterable[BookingRecord] = (),
    orders: Iterable[OrderRecord] = (),
    expenses: Iterable[ExpenseRecord] = (),
    payments: Iterable[StandalonePaymentRecord] = (),
    period: ReportingPeriod | None = None,
    presentation: ReportPresentation = DEFAULT_PRESENTATION,
    partial_payment_policy: PartialPaymentPolicy = DEFAULT_PARTIAL_PAYMENT_POLICY,
    fallback_timestamp: datetime | None = None,
) -> ReconciliationReport:
    """
    Reconcile parsed record collections into one report.

    Preconditions:
        - Every collection holds parsed records (see charter_engines.records).

    Postconditions:
        - revenue = booking + order + other revenue.
        - outstanding = booking + order outstanding.
        - costs = paid expenses + signed owner payments.
        - No linked order is counted through both a booking and the
          standalone order collection.
    """
    booking_parts = tuple(
        booking_contribution(b, partial_payment_policy, fallback_timestamp)
        for b in bookings
    )
    registry = reduce(
        lambda reg, part: reg.with_ids(part.linked_order_ids),
        booking_parts,
        LinkedOrderRegistry(),
    )

    kept_orders, skipped_ids = registry.partition_orders(orders)
    order_parts = tuple(order_contribution(o, partial_payment_policy) for o in kept_orders)

    expense_parts = tuple(
        part for part in (expense_contribution(e) for e in expenses) if part is not None
    )
    payment_parts = tuple(
        part for part in (other_payment_contribution(p) for p in payments) if part is not None
    )

    totals = fold_totals(
        part.totals
        for group in (booking_parts, order_parts, expense_parts, payment_parts)
        for part in group
    )

    sources = ReportSources(
        bookings=tuple(part.source for part in booking_parts),
        owner_payments=tuple(
            part.owner_source for part in booking_parts if part.owner_source is not None
        ),
        orders=tuple(part.source for part in order_parts),
        expenses=tuple(part.source for part in expense_parts),
        other_payments=tuple(part.source for part in payment_parts),
    )

    report = ReconciliationReport(
        booking_revenue=totals.booking_revenue,
        order_revenue=totals.order_revenue,
        other_revenue=totals.other_revenue,
        booking_outstanding=totals.booking_outstanding,
        order_outstanding=totals.order_outstanding,
        paid_expenses=totals.paid_expenses,
        owner_payments=totals.owner_payments,
        sources=sources,
        skipped_order_ids=skipped_ids,
        period=period,
        presentation=presentation,
    )

    logger.info("reconciliation_completed", extra={
        "booking_count": len(booking_parts),
        "order_count": len(order_parts),
        "skipped_order_count": len(skipped_ids),
        "paid_expense_count": len(expense_parts),
        "other_payment_count": len(payment_parts),
        "revenue": str(report.revenue),
        "costs": str(report.costs),
        "outstanding": str(report.outstanding),
        "profit_margin": str(report.profit_margin),
    })

    return report
