"""
charter_engines.dedup -- Linked-order registry for cross-collection deduplication.

A booking's linked order is also stored as a standalone order document.
Once a booking has reached an order id, the standalone copy is excluded so
the same money is never counted twice. Every linked id is registered,
whatever its payment status, so outstanding amounts are not doubled either.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from charter_kernel.logging_config import get_logger
from charter_engines.records import OrderRecord

logger = get_logger("engines.dedup")


@dataclass(frozen=True)
class LinkedOrderRegistry:
    """Immutable set of order ids already counted through bookings."""

    order_ids: frozenset[str] = frozenset()

    def with_ids(self, ids: Iterable[str]) -> LinkedOrderRegistry:
        return LinkedOrderRegistry(self.order_ids | frozenset(ids))

    def __contains__(self, order_id: object) -> bool:
        return order_id in self.order_ids

    def __len__(self) -> int:
        return len(self.order_ids)

    def partition_orders(
        self,
        orders: Iterable[OrderRecord],
    ) -> tuple[tuple[OrderRecord, ...], tuple[str, ...]]:
        """
        Split standalone orders into (orders to count, skipped ids).

        Orders without an id can never match a linked order and are kept.
        """
        kept: list[OrderRecord] = []
        skipped: list[str] = []
        for order in orders:
            if order.id is not None and order.id in self.order_ids:
                logger.info("linked_order_skipped", extra={
                    "order_id": order.id,
                    "reason": "already_counted_via_booking",
                })
                skipped.append(order.id)
            else:
                kept.append(order)
        return tuple(kept), tuple(skipped)
