"""
charter_engines.records -- Typed input records and tolerant parsers.

Responsibility:
    Convert the loosely-typed mappings supplied by the persistence layer
    (bookings, orders, expenses, standalone payments) into frozen records
    with normalized amounts. Missing, extra and legacy-shaped fields are
    absorbed here so the extractors only ever see one shape.

Architecture position:
    Engines -- pure domain objects, zero I/O. Parsers are total: they never
    raise on malformed field values.

Field sources (source key -> record field):
    Booking
        id                                   -> id
        pricing.agreedPrice                  -> agreed_price (None if absent)
        pricing.payments[]                   -> nested_payments
        payments[]                           -> legacy_root_payments
        linkedOrders[]                       -> linked_orders
        ownerPayments.{firstPayment,
            secondPayment, transferPayment}  -> owner_payments
        totalPaid | pricing.totalPaid        -> legacy_total_paid
        clientName | clientDetails.name      -> client_name ("Unknown")
        bookingDetails.boatName              -> boat_name ("Unknown Boat")
    Linked order
        orderDocId | orderId | id, amount, paymentStatus, updatedAt
    Order
        id, amount | amount_total, payment_details | paymentDetails
        {amountPaid, amountDue}, paymentStatus
    Expense
        id, amount, paymentStatus, category ("Uncategorized")
    Standalone payment
        id, amount, date, bookingId, orderId
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, TypeVar

from charter_kernel.domain.values import MonetaryAmount
from charter_kernel.logging_config import get_logger
from charter_engines.normalizer import normalize_amount

logger = get_logger("engines.records")

UNKNOWN_CLIENT = "Unknown"
UNKNOWN_BOAT = "Unknown Boat"
UNCATEGORIZED = "Uncategorized"

_R = TypeVar("_R")


class PaymentStatus(str, Enum):
    """Payment status of an order, linked order or expense."""

    PAID = "paid"
    PARTIALLY_PAID = "partially_paid"
    UNPAID = "unpaid"
    UNKNOWN = "unknown"  # absent or unrecognized status text

    @classmethod
    def parse(cls, raw: Any) -> PaymentStatus:
        if isinstance(raw, PaymentStatus):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw)
            except ValueError:
                pass
        return cls.UNKNOWN


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _mapping(raw: Any) -> Mapping[str, Any]:
    return raw if isinstance(raw, Mapping) else {}


def _identifier(raw: Any) -> str | None:
    """Record identifiers compare as text; empty values mean "no id"."""
    if raw is None or raw == "" or isinstance(raw, bool):
        return None
    return str(raw)


def _reference(raw: Any) -> str | None:
    """A link to another record; a numeric zero means no link."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool) and raw == 0:
        return None
    return _identifier(raw)


def _text(raw: Any) -> str | None:
    if raw is None:
        return None
    return str(raw)


def date_text(raw: Any) -> str | None:
    """Render a date-like source value as text, keeping strings untouched."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, (datetime, date)):
        return raw.isoformat()
    return str(raw)


def _optional_amount(container: Mapping[str, Any], key: str) -> MonetaryAmount | None:
    if key not in container:
        return None
    return normalize_amount(container[key])


def _mappings(raw: Any, *, field: str) -> tuple[Mapping[str, Any], ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    items = tuple(item for item in raw if isinstance(item, Mapping))
    if len(items) != len(raw):
        logger.debug("nested_entries_skipped", extra={
            "field": field,
            "skipped": len(raw) - len(items),
        })
    return items


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaymentRecord:
    """One client payment stored on a booking."""

    amount: MonetaryAmount
    date: str | None = None
    method: str | None = None
    type: str | None = None
    received: bool = False
    source_id: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PaymentRecord:
        return cls(
            amount=normalize_amount(raw.get("amount")),
            date=date_text(raw.get("date")),
            method=_text(raw.get("method")),
            type=_text(raw.get("type")),
            # Only an explicit True counts as received
            received=raw.get("received") is True,
            source_id=_identifier(raw.get("id")),
        )


@dataclass(frozen=True)
class LinkedOrderRef:
    """An ancillary order (catering, extras) attached to a booking."""

    order_id: str | None
    amount: MonetaryAmount
    payment_status: PaymentStatus
    updated_at: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LinkedOrderRef:
        order_id = raw.get("orderDocId")
        if order_id is None:
            order_id = raw.get("orderId", raw.get("id"))
        return cls(
            order_id=_identifier(order_id),
            amount=normalize_amount(raw.get("amount")),
            payment_status=PaymentStatus.parse(raw.get("paymentStatus")),
            updated_at=date_text(raw.get("updatedAt")),
        )


class OwnerPaymentSlotName(str, Enum):
    FIRST = "first"
    SECOND = "second"
    TRANSFER = "transfer"


_OWNER_SLOT_KEYS: tuple[tuple[OwnerPaymentSlotName, str], ...] = (
    (OwnerPaymentSlotName.FIRST, "firstPayment"),
    (OwnerPaymentSlotName.SECOND, "secondPayment"),
    (OwnerPaymentSlotName.TRANSFER, "transferPayment"),
)


@dataclass(frozen=True)
class OwnerPaymentSlot:
    """A disbursement owed to the boat owner; committed once signed."""

    amount: MonetaryAmount
    date: str | None = None
    signed: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> OwnerPaymentSlot:
        return cls(
            amount=normalize_amount(raw.get("amount")),
            date=date_text(raw.get("date")),
            signed=bool(raw.get("signature")),
        )


@dataclass(frozen=True)
class OwnerPayments:
    first: OwnerPaymentSlot | None = None
    second: OwnerPaymentSlot | None = None
    transfer: OwnerPaymentSlot | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> OwnerPayments:
        slots: dict[str, OwnerPaymentSlot | None] = {}
        for name, key in _OWNER_SLOT_KEYS:
            value = raw.get(key)
            slots[name.value] = (
                OwnerPaymentSlot.from_mapping(value) if isinstance(value, Mapping) else None
            )
        return cls(**slots)

    def signed_slots(self) -> tuple[tuple[OwnerPaymentSlotName, OwnerPaymentSlot], ...]:
        """Slots carrying a completion signature, in first/second/transfer order."""
        result = []
        for name, _ in _OWNER_SLOT_KEYS:
            slot = getattr(self, name.value)
            if slot is not None and slot.signed:
                result.append((name, slot))
        return tuple(result)


@dataclass(frozen=True)
class BookingRecord:
    """A charter booking with its client payments and linked orders."""

    id: str | None
    agreed_price: MonetaryAmount | None = None
    nested_payments: tuple[PaymentRecord, ...] = ()
    legacy_root_payments: tuple[PaymentRecord, ...] = ()
    linked_orders: tuple[LinkedOrderRef, ...] = ()
    owner_payments: OwnerPayments | None = None
    legacy_total_paid: MonetaryAmount | None = None
    client_name: str = UNKNOWN_CLIENT
    boat_name: str = UNKNOWN_BOAT

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> BookingRecord:
        pricing = _mapping(raw.get("pricing"))

        legacy_total_paid = _optional_amount(raw, "totalPaid")
        if legacy_total_paid is None:
            legacy_total_paid = _optional_amount(pricing, "totalPaid")

        owner_raw = raw.get("ownerPayments")
        client_name = raw.get("clientName") or _mapping(raw.get("clientDetails")).get("name")
        boat_name = _mapping(raw.get("bookingDetails")).get("boatName")

        return cls(
            id=_identifier(raw.get("id")),
            agreed_price=_optional_amount(pricing, "agreedPrice"),
            nested_payments=tuple(
                PaymentRecord.from_mapping(p)
                for p in _mappings(pricing.get("payments"), field="pricing.payments")
            ),
            legacy_root_payments=tuple(
                PaymentRecord.from_mapping(p)
                for p in _mappings(raw.get("payments"), field="payments")
            ),
            linked_orders=tuple(
                LinkedOrderRef.from_mapping(o)
                for o in _mappings(raw.get("linkedOrders"), field="linkedOrders")
            ),
            owner_payments=(
                OwnerPayments.from_mapping(owner_raw) if isinstance(owner_raw, Mapping) else None
            ),
            legacy_total_paid=legacy_total_paid,
            client_name=str(client_name) if client_name else UNKNOWN_CLIENT,
            boat_name=str(boat_name) if boat_name else UNKNOWN_BOAT,
        )

    @property
    def payments(self) -> tuple[PaymentRecord, ...]:
        """Nested and legacy root payments; both sources count independently."""
        return self.nested_payments + self.legacy_root_payments


@dataclass(frozen=True)
class PaymentDetails:
    amount_paid: MonetaryAmount
    amount_due: MonetaryAmount

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PaymentDetails:
        return cls(
            amount_paid=normalize_amount(raw.get("amountPaid")),
            amount_due=normalize_amount(raw.get("amountDue")),
        )


@dataclass(frozen=True)
class OrderRecord:
    """A standalone order (possibly also linked from a booking)."""

    id: str | None
    amount: MonetaryAmount
    payment_status: PaymentStatus = PaymentStatus.UNKNOWN
    payment_details: PaymentDetails | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> OrderRecord:
        # First key present wins, even when its value is empty
        if "amount" in raw:
            amount = normalize_amount(raw["amount"])
        else:
            amount = normalize_amount(raw.get("amount_total"))

        details_raw = raw.get("payment_details")
        if details_raw is None:
            details_raw = raw.get("paymentDetails")

        return cls(
            id=_identifier(raw.get("id")),
            amount=amount,
            payment_status=PaymentStatus.parse(raw.get("paymentStatus")),
            payment_details=(
                PaymentDetails.from_mapping(details_raw)
                if isinstance(details_raw, Mapping) else None
            ),
        )


@dataclass(frozen=True)
class ExpenseRecord:
    id: str | None
    amount: MonetaryAmount
    payment_status: PaymentStatus = PaymentStatus.UNKNOWN
    category: str = UNCATEGORIZED

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ExpenseRecord:
        category = raw.get("category")
        return cls(
            id=_identifier(raw.get("id")),
            amount=normalize_amount(raw.get("amount")),
            payment_status=PaymentStatus.parse(raw.get("paymentStatus")),
            category=str(category) if category else UNCATEGORIZED,
        )


@dataclass(frozen=True)
class StandalonePaymentRecord:
    """A payment recorded outside any booking or order document."""

    id: str | None
    amount: MonetaryAmount
    date: str | None = None
    booking_id: str | None = None
    order_id: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> StandalonePaymentRecord:
        return cls(
            id=_identifier(raw.get("id")),
            amount=normalize_amount(raw.get("amount")),
            date=date_text(raw.get("date")),
            booking_id=_reference(raw.get("bookingId")),
            order_id=_reference(raw.get("orderId")),
        )

    @property
    def is_unattributed(self) -> bool:
        """True when not tied to a booking or order already reflected elsewhere."""
        return self.booking_id is None and self.order_id is None


def parse_records(
    raw_items: Iterable[Any],
    parser: Callable[[Mapping[str, Any]], _R],
    *,
    collection: str,
) -> tuple[_R, ...]:
    """
    Parse every mapping in ``raw_items`` with ``parser``.

    Non-mapping entries (None, strings, numbers) are skipped with a
    ``record_skipped`` warning rather than aborting the reconciliation.
    """
    records = []
    for index, item in enumerate(raw_items):
        if isinstance(item, Mapping):
            records.append(parser(item))
        else:
            logger.warning("record_skipped", extra={
                "collection": collection,
                "index": index,
                "item_type": type(item).__name__,
            })
    return tuple(records)
