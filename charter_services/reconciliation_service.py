"""
ReconciliationService -- Service wrapper for company-wide reconciliation.

Composes the pure aggregation engine with input-shape validation, record
parsing, settings and clock injection.

Architecture: charter_services -- imperative shell.
    The service receives raw record collections from the persistence
    layer, rejects collections of the wrong shape, parses records, reads
    the clock once per call and delegates to the pure engines.

Invariants enforced:
    - The clock is read at most once per call; the reading only fills
      missing linked-order dates and never an amount.
    - Only input-shape violations propagate; irregular records and
      fields are absorbed by the engines.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from typing import Any

from charter_config import get_reconciliation_settings
from charter_config.bridges import (
    build_partial_payment_policy,
    build_presentation,
    resolve_percent_change_preset,
)
from charter_config.schema import ReconciliationSettings
from charter_engines.aggregation import calculate_company_margin
from charter_engines.booking_payments import BookingPayments, extract_booking_payments
from charter_engines.metrics import PercentageChange
from charter_engines.order_payments import OrderPayments, extract_order_payments
from charter_engines.partial_payment import PartialPaymentPolicy
from charter_engines.records import (
    BookingRecord,
    ExpenseRecord,
    OrderRecord,
    StandalonePaymentRecord,
    parse_records,
)
from charter_engines.report import ReconciliationReport, ReportingPeriod, compare_reports
from charter_kernel.domain.clock import Clock, SystemClock
from charter_kernel.exceptions import InputShapeError, InvalidPartialPaymentPolicyError
from charter_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.reconciliation")


def _collection(argument: str, raw: Any) -> tuple[Any, ...]:
    """
    Materialize one collection argument.

    None counts as an empty collection. Strings, bytes and single mappings
    are iterable but are not collections of records.
    """
    if raw is None:
        return ()
    if isinstance(raw, (str, bytes, bytearray, Mapping)) or not isinstance(raw, Iterable):
        raise InputShapeError(argument, type(raw).__name__)
    return tuple(raw)


def _record(argument: str, raw: Any) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise InputShapeError(argument, type(raw).__name__)
    return raw


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


class ReconciliationService:
    """Service that reconciles raw record snapshots into reports.

    Contract:
        - ``reconcile()`` validates collection shapes, parses records and
          returns one immutable ReconciliationReport.
        - ``extract_booking_payments()`` / ``extract_order_payments()``
          run a single-record extraction.
        - ``compare_periods()`` computes period-over-period changes.

    Non-goals:
        - Does NOT fetch records (caller supplies snapshots).
        - Does NOT persist reports.
    """

    def __init__(
        self,
        settings: ReconciliationSettings | None = None,
        clock: Clock | None = None,
        partial_payment_policy: PartialPaymentPolicy | None = None,
    ) -> None:
        self._settings = settings or get_reconciliation_settings()
        self._clock = clock or SystemClock()
        self._presentation = build_presentation(self._settings)
        self._percent_change_preset = resolve_percent_change_preset(self._settings)

        if partial_payment_policy is None:
            partial_payment_policy = build_partial_payment_policy(self._settings)
        elif not isinstance(partial_payment_policy, PartialPaymentPolicy):
            raise InvalidPartialPaymentPolicyError(
                f"{type(partial_payment_policy).__name__} has no split() method"
            )
        self._policy = partial_payment_policy

    @property
    def settings(self) -> ReconciliationSettings:
        return self._settings

    def reconcile(
        self,
        orders: Iterable[Mapping[str, Any]] | None = None,
        bookings: Iterable[Mapping[str, Any]] | None = None,
        expenses: Iterable[Mapping[str, Any]] | None = None,
        payments: Iterable[Mapping[str, Any]] | None = None,
        start_date: date | datetime | str | None = None,
        end_date: date | datetime | str | None = None,
        correlation_id: str | None = None,
    ) -> ReconciliationReport:
        """Reconcile four raw collections into one report.

        Args:
            orders: Standalone order documents.
            bookings: Booking documents.
            expenses: Expense documents.
            payments: Standalone payment documents.
            start_date: Start of the reporting period (date, datetime or
                ISO-8601 text).
            end_date: End of the reporting period. Daily averages are
                only computed when both bounds parse.
            correlation_id: Bound to every log record of this call.

        Returns:
            ReconciliationReport for the snapshot.

        Raises:
            InputShapeError: If a collection argument is not an iterable
                of records.
        """
        raw_orders = _collection("orders", orders)
        raw_bookings = _collection("bookings", bookings)
        raw_expenses = _collection("expenses", expenses)
        raw_payments = _collection("payments", payments)

        with LogContext.bind(correlation_id=correlation_id):
            period = self._period(start_date, end_date)
            fallback_timestamp = self._clock.now()

            logger.info("reconciliation_requested", extra={
                "order_count": len(raw_orders),
                "booking_count": len(raw_bookings),
                "expense_count": len(raw_expenses),
                "payment_count": len(raw_payments),
                "period_days": period.days if period else None,
            })

            return calculate_company_margin(
                bookings=parse_records(raw_bookings, BookingRecord.from_mapping, collection="bookings"),
                orders=parse_records(raw_orders, OrderRecord.from_mapping, collection="orders"),
                expenses=parse_records(raw_expenses, ExpenseRecord.from_mapping, collection="expenses"),
                payments=parse_records(
                    raw_payments, StandalonePaymentRecord.from_mapping, collection="payments"
                ),
                period=period,
                presentation=self._presentation,
                partial_payment_policy=self._policy,
                fallback_timestamp=fallback_timestamp,
            )

    def extract_booking_payments(self, booking: Mapping[str, Any]) -> BookingPayments:
        """Paid/outstanding extraction for one raw booking document."""
        record = BookingRecord.from_mapping(_record("booking", booking))
        with LogContext.bind(booking_id=record.id):
            return extract_booking_payments(record, self._policy, self._clock.now())

    def extract_order_payments(self, order: Mapping[str, Any]) -> OrderPayments:
        """Paid/due extraction for one raw order document."""
        record = OrderRecord.from_mapping(_record("order", order))
        with LogContext.bind(order_id=record.id):
            return extract_order_payments(record, self._policy)

    def compare_periods(
        self,
        current: ReconciliationReport,
        previous: ReconciliationReport,
    ) -> dict[str, PercentageChange]:
        """Period-over-period changes using the configured percent-change preset."""
        return compare_reports(current, previous, self._percent_change_preset)

    def _period(self, start: Any, end: Any) -> ReportingPeriod | None:
        if start is None and end is None:
            return None
        start_dt = _parse_datetime(start)
        end_dt = _parse_datetime(end)
        if start_dt is None or end_dt is None:
            logger.warning("reporting_period_ignored", extra={
                "start_date": str(start),
                "end_date": str(end),
            })
            return None
        return ReportingPeriod(start_dt, end_dt)
