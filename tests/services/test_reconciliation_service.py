"""
Tests for ReconciliationService: input-shape contract, clock injection,
settings wiring and period comparison.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from charter_config.schema import PartialPaymentDef, PresentationDef, ReconciliationSettings, RoundingDef
from charter_kernel.domain.values import MonetaryAmount
from charter_kernel.exceptions import InputShapeError, InvalidPartialPaymentPolicyError
from charter_services import ReconciliationService
from tests.conftest import FIXED_NOW


@pytest.fixture
def service(default_settings, deterministic_clock):
    return ReconciliationService(settings=default_settings, clock=deterministic_clock)


class TestInputShape:
    @pytest.mark.parametrize("bad", ["orders", b"orders", {"id": "O1"}, 42, object()])
    def test_non_collection_rejected(self, service, bad):
        with pytest.raises(InputShapeError) as exc_info:
            service.reconcile(orders=bad)
        assert exc_info.value.argument == "orders"
        assert exc_info.value.code == "INPUT_SHAPE_VIOLATION"

    def test_each_argument_checked(self, service):
        with pytest.raises(InputShapeError) as exc_info:
            service.reconcile(payments="p1")
        assert exc_info.value.argument == "payments"

    def test_none_means_empty(self, service):
        report = service.reconcile()
        assert report.revenue.is_zero
        assert report.sources.bookings == ()

    def test_generators_and_tuples_accepted(self, service, expense_factory):
        report = service.reconcile(
            expenses=(e for e in [expense_factory("E1", 10)]),
            payments=({"id": "P1", "amount": 5},),
        )
        assert report.costs == MonetaryAmount.of("10")
        assert report.revenue == MonetaryAmount.of("5")

    def test_junk_elements_skipped(self, service, expense_factory):
        report = service.reconcile(expenses=[None, 7, expense_factory("E1", 10)])
        assert report.paid_expenses == MonetaryAmount.of("10")

    def test_single_record_wrappers_require_mapping(self, service):
        with pytest.raises(InputShapeError):
            service.extract_booking_payments(["not", "a", "booking"])
        with pytest.raises(InputShapeError):
            service.extract_order_payments("O1")


class TestReconcile:
    def test_end_to_end(
        self, service, booking_factory, payment_factory, linked_order_factory,
        order_factory, expense_factory,
    ):
        report = service.reconcile(
            bookings=[booking_factory(
                agreed_price="1.500,00",
                payments=[payment_factory("1,000.00")],
                linked_orders=[linked_order_factory("X", 100)],
            )],
            orders=[order_factory("X", 100), order_factory("Y", 50)],
            expenses=[expense_factory("E1", 300)],
            payments=[{"id": "P1", "amount": "50"}],
            start_date="2024-06-01",
            end_date="2024-06-11",
        )
        assert report.revenue == MonetaryAmount.of("1200")
        assert report.order_revenue == MonetaryAmount.of("150")
        assert report.booking_outstanding == MonetaryAmount.of("400")
        assert report.costs == MonetaryAmount.of("300")
        assert report.profit_margin == Decimal("75.00")
        assert report.period.days == 10
        assert report.daily_avg_revenue == MonetaryAmount.of("120")
        assert report.display_values()["revenue"] == "€1,200.00"

    def test_date_objects_accepted(self, service):
        report = service.reconcile(
            start_date=date(2024, 6, 1),
            end_date=datetime(2024, 6, 3, tzinfo=timezone.utc),
        )
        assert report.period.days == 2

    def test_zulu_timestamps(self, service):
        report = service.reconcile(start_date="2024-06-01T00:00:00Z", end_date="2024-06-02T00:00:00Z")
        assert report.period.days == 1

    def test_unparseable_period_ignored(self, service, captured_logs):
        report = service.reconcile(start_date="soon", end_date="2024-06-02")
        assert report.period is None
        assert any(r["message"] == "reporting_period_ignored" for r in captured_logs())

    def test_single_bound_gives_no_period(self, service):
        assert service.reconcile(start_date="2024-06-01").period is None

    def test_correlation_id_in_logs(self, service, captured_logs):
        service.reconcile(correlation_id="req-7")
        requested = [r for r in captured_logs() if r["message"] == "reconciliation_requested"]
        assert requested[0]["correlation_id"] == "req-7"

    def test_fallback_date_from_injected_clock(self, service, booking_factory, linked_order_factory):
        result = service.extract_booking_payments(
            booking_factory(linked_orders=[linked_order_factory("X", 100, updated_at=None)]),
        )
        assert result.received_payments[0].date == FIXED_NOW.isoformat()
        assert result.received_payments[0].date_is_fallback

    def test_report_identical_across_clocks(self, default_settings, booking_factory, linked_order_factory):
        from charter_kernel.domain.clock import DeterministicClock

        raw = [booking_factory(linked_orders=[linked_order_factory("X", 100, updated_at=None)])]
        early = ReconciliationService(default_settings, DeterministicClock(datetime(2020, 1, 1, tzinfo=timezone.utc)))
        late = ReconciliationService(default_settings, DeterministicClock(datetime(2030, 1, 1, tzinfo=timezone.utc)))
        assert early.reconcile(bookings=raw) == late.reconcile(bookings=raw)


class TestSettingsWiring:
    def test_configured_partial_fraction(self, deterministic_clock, order_factory):
        settings = ReconciliationSettings(partial_payment=PartialPaymentDef(fraction="0.4"))
        service = ReconciliationService(settings=settings, clock=deterministic_clock)
        result = service.extract_order_payments(order_factory("O1", 100, status="partially_paid"))
        assert result.amount_paid == MonetaryAmount.of("40")
        assert result.amount_due == MonetaryAmount.of("60")

    def test_injected_policy_wins(self, default_settings, deterministic_clock, order_factory):
        class NothingReceived:
            def split(self, total):
                return MonetaryAmount.zero(), total

        service = ReconciliationService(default_settings, deterministic_clock, NothingReceived())
        result = service.extract_order_payments(order_factory("O1", 100, status="partially_paid"))
        assert result.amount_paid.is_zero

    def test_policy_without_split_rejected(self, default_settings):
        with pytest.raises(InvalidPartialPaymentPolicyError):
            ReconciliationService(default_settings, partial_payment_policy=object())

    def test_configured_presentation(self, deterministic_clock, payment_factory, booking_factory):
        settings = ReconciliationSettings(presentation=PresentationDef(locale="en-US", currency="usd"))
        service = ReconciliationService(settings=settings, clock=deterministic_clock)
        report = service.reconcile(bookings=[booking_factory(payments=[payment_factory(10)])])
        assert report.display_values()["revenue"] == "$10.00"

    def test_default_settings_loaded_when_omitted(self):
        assert ReconciliationService().settings.settings_id == "charter-default"


class TestComparePeriods:
    def test_configured_preset(self, deterministic_clock, booking_factory, payment_factory):
        settings = ReconciliationSettings(rounding=RoundingDef(percent_change="percent_change_two_places"))
        service = ReconciliationService(settings=settings, clock=deterministic_clock)
        current = service.reconcile(bookings=[booking_factory(payments=[payment_factory(1)])])
        previous = service.reconcile(bookings=[booking_factory(payments=[payment_factory(3)])])
        assert service.compare_periods(current, previous)["revenue"].display_value == "-66.67%"

    def test_default_preset_one_place(self, service, booking_factory, payment_factory):
        current = service.reconcile(bookings=[booking_factory(payments=[payment_factory(1100)])])
        previous = service.reconcile(bookings=[booking_factory(payments=[payment_factory(1000)])])
        changes = service.compare_periods(current, previous)
        assert changes["revenue"].display_value == "+10.0%"
        assert changes["costs"].display_value == "0%"
