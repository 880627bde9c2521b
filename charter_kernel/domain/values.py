"""
Values -- Immutable, self-validating monetary value object.

Responsibility:
    Provides MonetaryAmount, the single representation of money used by
    every reconciliation computation. Replaces primitive numbers wherever
    an amount appears in domain or engine logic.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by records, engines and services. No outward dependencies.

Invariants enforced:
    - Decimal-only storage and arithmetic: a float is never stored and a
      float operand is rejected.
    - Negative zero is canonicalized to zero, so identical inputs always
      render byte-identical text.
    - Rounding is explicit: nothing auto-rounds, callers pass the number
      of places (see charter_engines.rounding for the named presets).
    - Arithmetic runs in a context sized to its operands, so sums,
      differences and products are exact at any magnitude and quantize
      never overflows the precision.

Failure modes:
    - TypeError on construction from float or a non-numeric type.
    - ValueError on construction from a non-finite Decimal or a string
      that is not a plain decimal literal.
    - ZeroDivisionError from ``divide`` with a zero divisor.

Audit relevance:
    Reconciliation totals are only trustworthy if every intermediate value
    is exact. Tolerant parsing of dirty inputs lives in the normalizer;
    this type is strict.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import (
    MAX_EMAX,
    MIN_EMIN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    InvalidOperation,
)

_ZERO = Decimal("0")

# Significant digits carried beyond the operands' own width, for quotients
_GUARD_DIGITS = 28


def exact_context(*operands: Decimal) -> Context:
    """
    Decimal context wide enough that +, -, * and quantize over ``operands``
    never round; quotients keep at least 28 further significant digits.

    All operands must be finite.
    """
    top = max(op.adjusted() for op in operands) + len(operands)
    bottom = min(op.as_tuple().exponent for op in operands)
    coefficient = sum(len(op.as_tuple().digits) for op in operands)
    return Context(
        prec=max(top - bottom + 1, coefficient) + _GUARD_DIGITS,
        rounding=ROUND_HALF_EVEN,
        Emax=MAX_EMAX,
        Emin=MIN_EMIN,
    )


def quantize(value: Decimal, places: int, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Round ``value`` to ``places`` fractional digits, whatever its magnitude."""
    quantum = Decimal(1).scaleb(-places)
    return value.quantize(quantum, rounding=rounding, context=exact_context(value, quantum))


@dataclass(frozen=True, slots=True)
class MonetaryAmount:
    """
    Arbitrary-precision monetary magnitude.

    Contract:
        Wraps a finite Decimal. Currency is a presentation concern of the
        report, not of the value; all amounts in one reconciliation share
        the configured currency.

    Guarantees:
        - Immutable and hashable (frozen dataclass with slots)
        - value is always a finite Decimal, never float
        - Arithmetic returns new instances and never rounds implicitly

    Non-goals:
        - Does NOT parse locale-formatted strings (use normalize_amount)
        - Does NOT perform currency conversion
    """

    value: Decimal

    def __post_init__(self) -> None:
        value = self.value
        if isinstance(value, float):
            raise TypeError(
                "MonetaryAmount does not accept float; use normalize_amount()"
            )
        if isinstance(value, bool) or not isinstance(value, (Decimal, int, str)):
            raise TypeError(f"Invalid amount type: {type(value).__name__}")
        if not isinstance(value, Decimal):
            try:
                value = Decimal(value)
            except InvalidOperation as e:
                raise ValueError(f"Invalid amount: {self.value!r}") from e
        if not value.is_finite():
            raise ValueError(f"Amount must be finite: {value}")
        if value.is_zero() and value.is_signed():
            value = value.copy_abs()
        object.__setattr__(self, "value", value)

    @classmethod
    def of(cls, value: Decimal | int | str) -> MonetaryAmount:
        """Factory method for creating a MonetaryAmount."""
        return cls(value=value)

    @classmethod
    def zero(cls) -> MonetaryAmount:
        """Exact zero."""
        return cls(value=_ZERO)

    @property
    def is_zero(self) -> bool:
        return self.value.is_zero()

    @property
    def is_positive(self) -> bool:
        return self.value > _ZERO

    @property
    def is_negative(self) -> bool:
        return self.value < _ZERO

    def round(self, places: int, rounding: str = ROUND_HALF_UP) -> MonetaryAmount:
        """
        Round to a fixed number of fractional digits.

        Postconditions:
            - Returns a new MonetaryAmount; self is unchanged.
        """
        return MonetaryAmount(quantize(self.value, places, rounding))

    def to_number(self, places: int = 2, rounding: str = ROUND_HALF_UP) -> float:
        """Rounded plain-number mirror for display layers. Never fed back into arithmetic."""
        return float(self.round(places, rounding).value)

    def divide(
        self,
        divisor: MonetaryAmount | Decimal | int | str,
        places: int | None = None,
        rounding: str = ROUND_HALF_UP,
    ) -> MonetaryAmount:
        """
        Divide by a scalar or another amount, optionally rounding the quotient.

        Raises:
            ZeroDivisionError: If the divisor is zero.
        """
        d = _operand(divisor)
        if d.is_zero():
            raise ZeroDivisionError(f"Cannot divide {self.value} by zero")
        result = MonetaryAmount(exact_context(self.value, d).divide(self.value, d))
        if places is not None:
            result = result.round(places, rounding)
        return result

    def __add__(self, other: MonetaryAmount) -> MonetaryAmount:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return MonetaryAmount(exact_context(self.value, other.value).add(self.value, other.value))

    def __sub__(self, other: MonetaryAmount) -> MonetaryAmount:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return MonetaryAmount(exact_context(self.value, other.value).subtract(self.value, other.value))

    def __neg__(self) -> MonetaryAmount:
        return MonetaryAmount(self.value.copy_negate())

    def __abs__(self) -> MonetaryAmount:
        return MonetaryAmount(self.value.copy_abs())

    def __mul__(self, factor: Decimal | int | str) -> MonetaryAmount:
        if isinstance(factor, (float, bool)) or not isinstance(factor, (Decimal, int, str)):
            return NotImplemented
        factor = Decimal(factor)
        return MonetaryAmount(exact_context(self.value, factor).multiply(self.value, factor))

    def __rmul__(self, factor: Decimal | int | str) -> MonetaryAmount:
        return self.__mul__(factor)

    def __lt__(self, other: MonetaryAmount) -> bool:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: MonetaryAmount) -> bool:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: MonetaryAmount) -> bool:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: MonetaryAmount) -> bool:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return self.value >= other.value

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"MonetaryAmount({str(self.value)!r})"


def _operand(value: MonetaryAmount | Decimal | int | str) -> Decimal:
    if isinstance(value, MonetaryAmount):
        return value.value
    if isinstance(value, (float, bool)):
        raise TypeError(f"Invalid divisor type: {type(value).__name__}")
    return Decimal(value)


def sum_amounts(amounts: Iterable[MonetaryAmount]) -> MonetaryAmount:
    """Sum amounts starting from exact zero."""
    total = MonetaryAmount.zero()
    for amount in amounts:
        total = total + amount
    return total
