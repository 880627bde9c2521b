"""Kernel domain: the monetary value type and the clock abstraction."""

from charter_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from charter_kernel.domain.values import MonetaryAmount, sum_amounts

__all__ = [
    "Clock",
    "DeterministicClock",
    "MonetaryAmount",
    "SystemClock",
    "sum_amounts",
]
