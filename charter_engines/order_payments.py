"""
charter_engines.order_payments -- Paid/due extraction for one standalone order.

Invariants enforced:
    - With payment details: amounts are taken as recorded. When both are
      zero but the order has a total, ``paid``/``unpaid`` status fills the
      matching side. A still-zero due amount becomes ``total - paid`` when
      positive.
    - Without payment details: status alone decides; ``partially_paid``
      delegates to the partial-payment policy; any other non-paid status
      leaves the full total due.
"""

from __future__ import annotations

from dataclasses import dataclass

from charter_kernel.domain.values import MonetaryAmount
from charter_kernel.logging_config import get_logger
from charter_engines.partial_payment import (
    DEFAULT_PARTIAL_PAYMENT_POLICY,
    PartialPaymentPolicy,
)
from charter_engines.records import OrderRecord, PaymentStatus

logger = get_logger("engines.order_payments")


@dataclass(frozen=True)
class OrderPayments:
    total_amount: MonetaryAmount
    amount_paid: MonetaryAmount
    amount_due: MonetaryAmount


def extract_order_payments(
    order: OrderRecord,
    partial_payment_policy: PartialPaymentPolicy = DEFAULT_PARTIAL_PAYMENT_POLICY,
) -> OrderPayments:
    """Derive total, paid and due amounts for one order."""
    total = order.amount
    zero = MonetaryAmount.zero()
    status = order.payment_status

    if order.payment_details is not None:
        paid = order.payment_details.amount_paid
        due = order.payment_details.amount_due

        if paid.is_zero and due.is_zero and not total.is_zero:
            if status is PaymentStatus.PAID:
                paid = total
            elif status is PaymentStatus.UNPAID:
                due = total

        if due.is_zero and total > paid:
            due = total - paid

    elif status is PaymentStatus.PAID:
        paid, due = total, zero
    elif status is PaymentStatus.PARTIALLY_PAID and not total.is_zero:
        paid, due = partial_payment_policy.split(total)
    else:
        paid, due = zero, total

    logger.debug("order_payments_extracted", extra={
        "order_id": order.id,
        "payment_status": status.value,
        "has_payment_details": order.payment_details is not None,
        "total_amount": str(total),
        "amount_paid": str(paid),
        "amount_due": str(due),
    })

    return OrderPayments(total_amount=total, amount_paid=paid, amount_due=due)
