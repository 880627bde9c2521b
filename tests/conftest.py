"""
Pytest fixtures for the charter reconciliation test suite.

Provides:
- Structured log capture
- Deterministic clock and settings
- Raw record factories shaped like the dashboard's stored documents
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO

import pytest

from charter_config.schema import ReconciliationSettings
from charter_kernel.domain.clock import DeterministicClock
from charter_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

FIXED_NOW = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """Capture structured JSON log records emitted during a test.

    Usage:
        def test_something(captured_logs):
            ...
            records = captured_logs()
            assert any(r["message"] == "linked_order_skipped" for r in records)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("charter_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and settings fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def default_settings():
    return ReconciliationSettings()


# =============================================================================
# Raw record factories
# =============================================================================


def make_booking(
    booking_id="B1",
    agreed_price=None,
    payments=None,
    root_payments=None,
    linked_orders=None,
    owner_payments=None,
    total_paid=None,
    client_name="Ana Pop",
    boat_name="Blue Wave",
):
    """Raw booking document with only the requested fields present."""
    booking = {"id": booking_id, "clientName": client_name, "bookingDetails": {"boatName": boat_name}}
    pricing = {}
    if agreed_price is not None:
        pricing["agreedPrice"] = agreed_price
    if payments is not None:
        pricing["payments"] = payments
    if pricing:
        booking["pricing"] = pricing
    if root_payments is not None:
        booking["payments"] = root_payments
    if linked_orders is not None:
        booking["linkedOrders"] = linked_orders
    if owner_payments is not None:
        booking["ownerPayments"] = owner_payments
    if total_paid is not None:
        booking["totalPaid"] = total_paid
    return booking


def make_payment(amount, received=True, date="2024-05-01", method="card", type_="deposit"):
    return {"amount": amount, "received": received, "date": date, "method": method, "type": type_}


def make_linked_order(order_id, amount, status="paid", updated_at="2024-05-02T10:00:00"):
    linked = {"orderId": order_id, "amount": amount, "paymentStatus": status}
    if updated_at is not None:
        linked["updatedAt"] = updated_at
    return linked


def make_order(order_id, amount, status="paid", details=None):
    order = {"id": order_id, "amount": amount, "paymentStatus": status}
    if details is not None:
        order["payment_details"] = details
    return order


def make_expense(expense_id, amount, status="paid", category="Fuel"):
    expense = {"id": expense_id, "amount": amount, "paymentStatus": status}
    if category is not None:
        expense["category"] = category
    return expense


@pytest.fixture
def booking_factory():
    return make_booking


@pytest.fixture
def payment_factory():
    return make_payment


@pytest.fixture
def linked_order_factory():
    return make_linked_order


@pytest.fixture
def order_factory():
    return make_order


@pytest.fixture
def expense_factory():
    return make_expense
