from __future__ import annotations

from topocollect.domain.accumulator import BatchAccumulator
from topocollect.domain.model import InventoryRecord


def test_collections_keep_first_use_order_and_records() -> None:
    accumulator = BatchAccumulator()
    assert accumulator.record_count() == 0

    accumulator.add("vms", InventoryRecord(source_ref="a"))
    accumulator.add("vm_tags", InventoryRecord(source_ref="a/tags/env"))
    accumulator.add("vms", InventoryRecord(source_ref="b"))

    assert accumulator.collection_names() == ["vms", "vm_tags"]
    assert accumulator.record_count() == 3
    snapshot = accumulator.snapshot()
    assert [record.source_ref for record in snapshot[0].records] == ["a", "b"]


def test_snapshot_is_detached_from_later_collections() -> None:
    accumulator = BatchAccumulator()
    accumulator.add("vms", InventoryRecord(source_ref="a"))

    snapshot = accumulator.snapshot()
    accumulator.add("flavors", InventoryRecord(source_ref="small"))

    assert [collection.name for collection in snapshot] == ["vms"]
