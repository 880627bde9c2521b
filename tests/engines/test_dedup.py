"""Tests for the linked-order registry."""

from charter_engines.dedup import LinkedOrderRegistry
from charter_engines.records import OrderRecord


def _orders(*ids):
    return [OrderRecord.from_mapping({"id": i, "amount": 10}) for i in ids]


class TestLinkedOrderRegistry:
    def test_with_ids_returns_new_registry(self):
        empty = LinkedOrderRegistry()
        filled = empty.with_ids(["A", "B"])
        assert len(empty) == 0
        assert len(filled) == 2
        assert "A" in filled

    def test_partition(self):
        registry = LinkedOrderRegistry().with_ids(["B"])
        kept, skipped = registry.partition_orders(_orders("A", "B", "C"))
        assert [o.id for o in kept] == ["A", "C"]
        assert skipped == ("B",)

    def test_orders_without_id_are_kept(self):
        registry = LinkedOrderRegistry().with_ids(["A"])
        kept, skipped = registry.partition_orders([OrderRecord.from_mapping({"amount": 5})])
        assert len(kept) == 1
        assert skipped == ()

    def test_numeric_ids_match_as_text(self):
        registry = LinkedOrderRegistry().with_ids(["42"])
        _, skipped = registry.partition_orders(_orders(42))
        assert skipped == ("42",)

    def test_skip_logged(self, captured_logs):
        LinkedOrderRegistry().with_ids(["A"]).partition_orders(_orders("A"))
        records = [r for r in captured_logs() if r["message"] == "linked_order_skipped"]
        assert records[0]["order_id"] == "A"
        assert records[0]["reason"] == "already_counted_via_booking"
