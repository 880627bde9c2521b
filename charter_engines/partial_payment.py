"""
charter_engines.partial_payment -- Estimation of partially-paid orders.

Responsibility:
    Source records flag an order as ``partially_paid`` without saying how
    much arrived. A policy decides how such a total splits into a paid
    and a remaining part. Both the booking extractor (linked orders) and
    the order extractor (standalone orders) delegate to the same policy.

Invariants enforced:
    - ``paid + remaining == total`` exactly, for every policy.
    - Neither part is negative for a non-negative total.

Usage:
    policy = FixedFractionPolicy()            # 50/50 split
    paid, remaining = policy.split(MonetaryAmount.of("100"))
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable

from charter_kernel.domain.values import MonetaryAmount
from charter_kernel.exceptions import InvalidPartialPaymentPolicyError


@runtime_checkable
class PartialPaymentPolicy(Protocol):
    """Splits a partially-paid total into (paid, remaining)."""

    def split(self, total: MonetaryAmount) -> tuple[MonetaryAmount, MonetaryAmount]:
        ...


@dataclass(frozen=True)
class FixedFractionPolicy:
    """
    Treat a fixed fraction of the total as received.

    The default fraction of one half is an approximation for records that
    lack granular payment data; replace the policy once they carry it.
    """

    fraction: Decimal = Decimal("0.5")

    def __post_init__(self) -> None:
        fraction = self.fraction
        if isinstance(fraction, (float, bool)):
            raise InvalidPartialPaymentPolicyError(
                f"fraction must be Decimal, int or str, got {type(fraction).__name__}"
            )
        if not isinstance(fraction, Decimal):
            try:
                fraction = Decimal(str(fraction))
            except ArithmeticError:
                raise InvalidPartialPaymentPolicyError(
                    f"fraction is not a number: {self.fraction!r}"
                ) from None
            object.__setattr__(self, "fraction", fraction)
        if not fraction.is_finite() or fraction < 0 or fraction > 1:
            raise InvalidPartialPaymentPolicyError(
                f"fraction must be within [0, 1], got {self.fraction}"
            )

    def split(self, total: MonetaryAmount) -> tuple[MonetaryAmount, MonetaryAmount]:
        paid = total * self.fraction
        return paid, total - paid


DEFAULT_PARTIAL_PAYMENT_POLICY = FixedFractionPolicy()
