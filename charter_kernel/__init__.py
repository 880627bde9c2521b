"""
Charter Kernel

Exact-decimal foundation for reconciling charter bookings, ancillary
orders, expenses and standalone payments:
- MonetaryAmount value type (Decimal only, never float)
- Tolerant parsers for loosely-shaped source records
- Typed exceptions with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
