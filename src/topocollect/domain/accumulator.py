"""In-memory buffer of normalized records between two flushes."""

from __future__ import annotations

from topocollect.domain.model import InventoryCollection, InventoryRecord


class BatchAccumulator:
    """Holds the named collections of the part currently being assembled.

    Collections are created on first use and keep insertion order, so a snapshot
    lists them in the order the normalizer first touched them.
    """

    def __init__(self) -> None:
        self._collections: dict[str, InventoryCollection] = {}

    def collection(self, name: str) -> InventoryCollection:
        existing = self._collections.get(name)
        if existing is None:
            existing = InventoryCollection(name=name)
            self._collections[name] = existing
        return existing

    def add(self, collection: str, record: InventoryRecord) -> InventoryRecord:
        self.collection(collection).append(record)
        return record

    def snapshot(self) -> list[InventoryCollection]:
        return list(self._collections.values())

    def collection_names(self) -> list[str]:
        return list(self._collections)

    def record_count(self) -> int:
        return sum(len(collection) for collection in self._collections.values())
