"""
charter_engines.booking_payments -- Paid/outstanding extraction for one booking.

Responsibility:
    Derive the agreed price, total paid, total outstanding and the itemized
    received/pending payment lines of a single booking, including its
    linked (ancillary) orders.

Architecture position:
    Engines -- pure calculation layer, zero I/O, no clock access.
    The fallback timestamp for undated linked orders is supplied by the
    caller.

Invariants enforced:
    - Nested (``pricing.payments``) and legacy root (``payments``) lists
      are both honored; neither shadows the other.
    - Linked-order lines carry the order id so the aggregator can separate
      linked-order revenue and exclude the order from the standalone pass.
    - Fallbacks apply only when the primary sum is exactly zero:
        total_paid        <- legacy total paid
        total_outstanding <- agreed price - total paid (if positive)
    - The fallback timestamp only ever fills a line's ``date``; it never
      influences an amount.

Failure modes:
    - None raised. A booking with no usable fields yields an all-zero
      result with empty line lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from charter_kernel.domain.values import MonetaryAmount, sum_amounts
from charter_kernel.logging_config import get_logger
from charter_engines.partial_payment import (
    DEFAULT_PARTIAL_PAYMENT_POLICY,
    PartialPaymentPolicy,
)
from charter_engines.records import BookingRecord, LinkedOrderRef, PaymentStatus

logger = get_logger("engines.booking_payments")

LINKED_ORDER_METHOD = "order-payment"


class PaymentLineKind(str, Enum):
    """Origin of an itemized payment line."""

    PAYMENT = "payment"
    LINKED_ORDER = "linked-order"
    LINKED_ORDER_PARTIAL = "linked-order-partial"
    LINKED_ORDER_REMAINING = "linked-order-remaining"
    LINKED_ORDER_UNPAID = "linked-order-unpaid"


@dataclass(frozen=True)
class PaymentLine:
    """
    One itemized received or pending amount.

    ``linked_order_id`` is set for every line derived from a linked order;
    ``date_is_fallback`` marks a date substituted from the caller's clock.
    """

    amount: MonetaryAmount
    kind: PaymentLineKind = PaymentLineKind.PAYMENT
    date: str | None = None
    method: str | None = None
    payment_type: str | None = None
    linked_order_id: str | None = None
    date_is_fallback: bool = False

    @property
    def is_linked_order(self) -> bool:
        return self.kind is not PaymentLineKind.PAYMENT


@dataclass(frozen=True)
class BookingPayments:
    """Extraction result for one booking."""

    agreed_price: MonetaryAmount
    total_paid: MonetaryAmount
    total_outstanding: MonetaryAmount
    received_payments: tuple[PaymentLine, ...] = ()
    pending_payments: tuple[PaymentLine, ...] = ()

    @property
    def linked_order_received(self) -> MonetaryAmount:
        """Received money that arrived through linked orders."""
        return sum_amounts(p.amount for p in self.received_payments if p.is_linked_order)

    @property
    def booking_only_received(self) -> MonetaryAmount:
        """Total paid minus the linked-order share, so no amount sits in both buckets."""
        return self.total_paid - self.linked_order_received

    @property
    def linked_order_ids(self) -> frozenset[str]:
        lines = self.received_payments + self.pending_payments
        return frozenset(p.linked_order_id for p in lines if p.linked_order_id is not None)


def _linked_order_lines(
    linked: LinkedOrderRef,
    policy: PartialPaymentPolicy,
    fallback_date: str | None,
) -> tuple[tuple[PaymentLine, ...], tuple[PaymentLine, ...]]:
    """Classify one linked order into (received lines, pending lines)."""
    date = linked.updated_at
    is_fallback = date is None and fallback_date is not None
    if date is None:
        date = fallback_date

    def line(amount: MonetaryAmount, kind: PaymentLineKind) -> PaymentLine:
        return PaymentLine(
            amount=amount,
            kind=kind,
            date=date,
            method=LINKED_ORDER_METHOD,
            payment_type=kind.value,
            linked_order_id=linked.order_id,
            date_is_fallback=is_fallback,
        )

    if linked.payment_status is PaymentStatus.PAID:
        return (line(linked.amount, PaymentLineKind.LINKED_ORDER),), ()

    if linked.amount.is_zero:
        # Nothing to receive or chase
        return (), ()

    if linked.payment_status is PaymentStatus.PARTIALLY_PAID:
        paid, remaining = policy.split(linked.amount)
        return (
            (line(paid, PaymentLineKind.LINKED_ORDER_PARTIAL),),
            (line(remaining, PaymentLineKind.LINKED_ORDER_REMAINING),),
        )

    return (), (line(linked.amount, PaymentLineKind.LINKED_ORDER_UNPAID),)


def extract_booking_payments(
    booking: BookingRecord,
    partial_payment_policy: PartialPaymentPolicy = DEFAULT_PARTIAL_PAYMENT_POLICY,
    fallback_timestamp: datetime | None = None,
) -> BookingPayments:
    """
    Derive paid/outstanding totals and itemized lines for one booking.

    Args:
        booking: Parsed booking record.
        partial_payment_policy: Split used for ``partially_paid`` linked orders.
        fallback_timestamp: Date used for linked orders without ``updatedAt``.
            When None, such lines keep an empty date.

    Returns:
        BookingPayments with exact totals and immutable line tuples.
    """
    agreed_price = booking.agreed_price or MonetaryAmount.zero()

    received: list[PaymentLine] = []
    pending: list[PaymentLine] = []

    for payment in booking.payments:
        line = PaymentLine(
            amount=payment.amount,
            date=payment.date,
            method=payment.method,
            payment_type=payment.type,
        )
        (received if payment.received else pending).append(line)

    fallback_date = fallback_timestamp.isoformat() if fallback_timestamp else None
    for linked in booking.linked_orders:
        got, owed = _linked_order_lines(linked, partial_payment_policy, fallback_date)
        received.extend(got)
        pending.extend(owed)

    total_paid = sum_amounts(p.amount for p in received)
    total_outstanding = sum_amounts(p.amount for p in pending)

    if total_paid.is_zero and booking.legacy_total_paid is not None:
        total_paid = booking.legacy_total_paid

    if total_outstanding.is_zero and agreed_price > total_paid:
        total_outstanding = agreed_price - total_paid

    logger.debug("booking_payments_extracted", extra={
        "booking_id": booking.id,
        "agreed_price": str(agreed_price),
        "total_paid": str(total_paid),
        "total_outstanding": str(total_outstanding),
        "received_count": len(received),
        "pending_count": len(pending),
    })

    return BookingPayments(
        agreed_price=agreed_price,
        total_paid=total_paid,
        total_outstanding=total_outstanding,
        received_payments=tuple(received),
        pending_payments=tuple(pending),
    )
