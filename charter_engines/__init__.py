"""
Module: charter_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    reconciliation engines. This is the import surface for the service
    layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import charter_kernel (and sibling engine modules).
    MUST NOT import charter_config or charter_services.

Invariants enforced:
    - Purity: engines never read the wall clock. A fallback timestamp for
      undated linked orders is passed in by the caller.
    - Decimal-only arithmetic through MonetaryAmount; floats are converted
      once, at normalization.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    The aggregation entry point is traced with ``@traced_engine`` and emits
    a CHARTER_ENGINE_TRACE record carrying an input fingerprint.

Usage:
    from charter_engines.normalizer import normalize_amount
    from charter_engines.aggregation import calculate_company_margin
    from charter_engines.metrics import percentage_change, profit_margin
"""

from charter_kernel.logging_config import get_logger

logger = get_logger("engines")

from charter_engines.aggregation import (
    ReconciliationTotals,
    calculate_company_margin,
    fold_totals,
)
from charter_engines.booking_payments import (
    BookingPayments,
    PaymentLine,
    PaymentLineKind,
    extract_booking_payments,
)
from charter_engines.booking_profit import (
    AggregatedProfit,
    BookingProfit,
    ProfitTier,
    calculate_aggregated_profit,
    calculate_booking_profit,
    classify_profit_margin,
    find_matching_expense,
)
from charter_engines.dedup import LinkedOrderRegistry
from charter_engines.formatting import (
    DEFAULT_PRESENTATION,
    ReportPresentation,
    format_currency,
    format_percent,
)
from charter_engines.metrics import (
    PercentageChange,
    ProfitMargin,
    percentage,
    percentage_change,
    profit_margin,
    safe_divide,
)
from charter_engines.normalizer import normalize_amount, sum_normalized
from charter_engines.order_payments import OrderPayments, extract_order_payments
from charter_engines.partial_payment import (
    DEFAULT_PARTIAL_PAYMENT_POLICY,
    FixedFractionPolicy,
    PartialPaymentPolicy,
)
from charter_engines.records import (
    BookingRecord,
    ExpenseRecord,
    OrderRecord,
    PaymentStatus,
    StandalonePaymentRecord,
    parse_records,
)
from charter_engines.report import (
    ReconciliationReport,
    ReportingPeriod,
    compare_reports,
)
from charter_engines.rounding import (
    CURRENCY,
    MARGIN_PERCENT,
    PERCENT_CHANGE_ONE_PLACE,
    PERCENT_CHANGE_TWO_PLACES,
    RATIO,
    RoundingPreset,
    preset_by_name,
)
from charter_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Aggregation
    "ReconciliationTotals",
    "calculate_company_margin",
    "fold_totals",
    # Booking payments
    "BookingPayments",
    "PaymentLine",
    "PaymentLineKind",
    "extract_booking_payments",
    # Booking profit
    "AggregatedProfit",
    "BookingProfit",
    "ProfitTier",
    "calculate_aggregated_profit",
    "calculate_booking_profit",
    "classify_profit_margin",
    "find_matching_expense",
    # Dedup
    "LinkedOrderRegistry",
    # Formatting
    "DEFAULT_PRESENTATION",
    "ReportPresentation",
    "format_currency",
    "format_percent",
    # Metrics
    "PercentageChange",
    "ProfitMargin",
    "percentage",
    "percentage_change",
    "profit_margin",
    "safe_divide",
    # Normalizer
    "normalize_amount",
    "sum_normalized",
    # Order payments
    "OrderPayments",
    "extract_order_payments",
    # Partial payment
    "DEFAULT_PARTIAL_PAYMENT_POLICY",
    "FixedFractionPolicy",
    "PartialPaymentPolicy",
    # Records
    "BookingRecord",
    "ExpenseRecord",
    "OrderRecord",
    "PaymentStatus",
    "StandalonePaymentRecord",
    "parse_records",
    # Report
    "ReconciliationReport",
    "ReportingPeriod",
    "compare_reports",
    # Rounding
    "CURRENCY",
    "MARGIN_PERCENT",
    "PERCENT_CHANGE_ONE_PLACE",
    "PERCENT_CHANGE_TWO_PLACES",
    "RATIO",
    "RoundingPreset",
    "preset_by_name",
    # Tracer
    "compute_input_fingerprint",
    "traced_engine",
]
