"""Tests for ReconciliationReport derived values and period comparison."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from charter_kernel.domain.values import MonetaryAmount
from charter_engines.formatting import ReportPresentation
from charter_engines.report import (
    OWNER_PAYMENTS_CATEGORY,
    ExpenseSource,
    ReconciliationReport,
    ReportingPeriod,
    ReportSources,
    compare_reports,
)
from charter_engines.rounding import PERCENT_CHANGE_TWO_PLACES


def _amount(value):
    return MonetaryAmount.of(value)


def _report(
    booking="0", order="0", other="0", booking_due="0", order_due="0",
    expenses="0", owner="0", **kwargs,
):
    return ReconciliationReport(
        booking_revenue=_amount(booking),
        order_revenue=_amount(order),
        other_revenue=_amount(other),
        booking_outstanding=_amount(booking_due),
        order_outstanding=_amount(order_due),
        paid_expenses=_amount(expenses),
        owner_payments=_amount(owner),
        **kwargs,
    )


class TestReportingPeriod:
    def test_whole_days(self):
        assert ReportingPeriod(date(2024, 1, 1), date(2024, 1, 31)).days == 30

    def test_partial_day_rounds_up(self):
        period = ReportingPeriod(datetime(2024, 1, 1), datetime(2024, 1, 2, 0, 0, 1))
        assert period.days == 2

    def test_never_below_one(self):
        assert ReportingPeriod(date(2024, 1, 1), date(2024, 1, 1)).days == 1
        assert ReportingPeriod(date(2024, 2, 1), date(2024, 1, 1)).days == 1

    def test_mixed_naive_and_aware(self):
        period = ReportingPeriod(date(2024, 1, 1), datetime(2024, 1, 3, tzinfo=timezone.utc))
        assert period.days == 2


class TestDerivedFigures:
    def test_margin_derived_on_read(self):
        report = _report(booking="1000", expenses="300")
        assert report.net_profit == _amount("700")
        assert report.profit_margin == Decimal("70.00")
        assert report.margin.is_positive

    def test_negative_margin(self):
        report = _report(booking="100", expenses="150")
        assert report.profit_margin == Decimal("-50.00")
        assert not report.margin.is_positive

    def test_costs_by_category(self):
        sources = ReportSources(expenses=(
            ExpenseSource("E1", _amount("10"), "Fuel"),
            ExpenseSource("E2", _amount("5"), "Crew"),
            ExpenseSource("E3", _amount("2.50"), "Fuel"),
        ))
        report = _report(expenses="17.50", owner="100", sources=sources)
        assert report.costs_by_category() == {
            "Fuel": _amount("12.50"),
            "Crew": _amount("5"),
            OWNER_PAYMENTS_CATEGORY: _amount("100"),
        }

    def test_revenue_by_source(self):
        report = _report(booking="1", order="2", other="3")
        assert report.revenue_by_source() == {
            "bookings": _amount("1"),
            "orders": _amount("2"),
            "other": _amount("3"),
        }


class TestNumberMirrors:
    def test_currency_rounding(self):
        report = _report(booking="1000.005", expenses="0.004")
        numbers = report.to_numbers()
        assert numbers["revenue"] == 1000.01
        assert numbers["costs"] == 0.0
        assert numbers["net_profit"] == 1000.0
        assert isinstance(numbers["profit_margin"], float)

    def test_daily_average_mirror(self):
        report = _report(booking="100", period=ReportingPeriod(date(2024, 1, 1), date(2024, 1, 4)))
        assert report.to_numbers()["daily_avg_revenue"] == 33.33


    def test_amounts_beyond_default_precision(self):
        report = _report(other="123456789012345678901234567")
        numbers = report.to_numbers()
        assert numbers["revenue"] == float("123456789012345678901234567")
        assert numbers["profit_margin"] == 100.0
        assert report.revenue.round(2).value == Decimal("123456789012345678901234567.00")


class TestDisplayValues:
    def test_default_presentation(self):
        display = _report(booking="1234.5", expenses="234.5").display_values()
        assert display["revenue"] == "€1,234.50"
        assert display["costs"] == "€234.50"
        assert display["net_profit"] == "€1,000.00"
        assert display["profit_margin"] == "81.00%"

    def test_custom_presentation(self):
        report = _report(booking="10", presentation=ReportPresentation("en-US", "USD"))
        assert report.display_values()["revenue"] == "$10.00"


    def test_amounts_beyond_default_precision(self):
        display = _report(other="123456789012345678901234567.891").display_values()
        assert display["revenue"] == "€123,456,789,012,345,678,901,234,567.89"
        assert display["profit_margin"] == "100.00%"


class TestCompareReports:
    def test_changes(self):
        current = _report(booking="1100", expenses="400", booking_due="50")
        previous = _report(booking="1000", expenses="500", booking_due="0")
        changes = compare_reports(current, previous)

        assert changes["revenue"].display_value == "+10.0%"
        assert changes["costs"].display_value == "-20.0%"
        assert not changes["costs"].is_increase
        assert changes["net_profit"].value == Decimal("40.0")
        assert changes["outstanding"].display_value == "0%"

    def test_two_place_preset(self):
        changes = compare_reports(_report(booking="1"), _report(booking="3"), PERCENT_CHANGE_TWO_PLACES)
        assert changes["revenue"].display_value == "-66.67%"

    @pytest.mark.parametrize("key", ["revenue", "costs", "net_profit", "outstanding"])
    def test_empty_previous_period(self, key):
        changes = compare_reports(_report(booking="10"), _report())
        assert changes[key].value == Decimal("0")

    def test_large_periods(self):
        current = _report(booking="2469135780246913578024691357.80")
        previous = _report(booking="1234567890123456789012345678.90")
        assert compare_reports(current, previous)["revenue"].display_value == "+100.0%"
