"""In-memory collaborators for exercising the refresh-cycle protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

from topocollect.domain.model import InventoryRecord, Scope

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping, Sequence

    from topocollect.domain.accumulator import BatchAccumulator
    from topocollect.domain.model import InventoryCollection
    from topocollect.domain.ports.fetching import RawFetcher


def scopes(count: int) -> list[Scope]:
    return [Scope.of(subscription_id=f"sub-{index}") for index in range(1, count + 1)]


@dataclass(slots=True)
class FakeScopeSource:
    items: list[Scope]
    calls: int = 0

    def scopes(self) -> list[Scope]:
        self.calls += 1
        return list(self.items)


@dataclass(slots=True)
class FakeFetchers:
    """Serves ``records[tag][subscription_id]`` and can fail for chosen scopes.

    ``on_record`` is called with the tag and raw value after each record is handed out.
    """

    records: dict[str, dict[str, list[str]]] = field(default_factory=dict)
    failures: dict[tuple[str, str], Exception] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    on_record: Callable[[str, str], object] | None = None

    def fetcher_for(self, tag: str) -> RawFetcher | None:
        if tag not in self.records:
            return None

        def fetch(scope: Scope) -> Iterator[str]:
            subscription = scope.subscription_id or ""
            self.calls.append((tag, subscription))
            failure = self.failures.get((tag, subscription))
            if failure is not None:
                raise failure
            for raw in self.records[tag].get(subscription, []):
                yield raw
                if self.on_record is not None:
                    self.on_record(tag, raw)

        return fetch


def counted(tag: str, per_scope: Mapping[str, int]) -> dict[str, list[str]]:
    return {
        subscription: [f"{tag}-{subscription}-{index}" for index in range(count)]
        for subscription, count in per_scope.items()
    }


@dataclass(slots=True)
class FakeNormalizer:
    """Appends each raw value to the collection named after its type.

    ``extra`` adds a second record to another collection, like a VM parser that
    also emits tags.
    """

    extra: dict[str, str] = field(default_factory=dict)
    unsupported: set[str] = field(default_factory=set)

    def supports(self, tag: str) -> bool:
        return tag not in self.unsupported

    def normalize(
        self,
        tag: str,
        raw: object,
        scope: Scope,
        accumulator: BatchAccumulator,
    ) -> None:
        attributes = {"subscription": scope.subscription_id}
        accumulator.add(tag, InventoryRecord(source_ref=str(raw), attributes=attributes))
        if tag in self.extra:
            accumulator.add(
                self.extra[tag],
                InventoryRecord(source_ref=f"{raw}/extra", attributes=attributes),
            )


@dataclass(slots=True)
class Upload:
    refresh_state_uuid: UUID
    refresh_state_part_uuid: UUID
    collections: dict[str, list[str]]

    @property
    def record_count(self) -> int:
        return sum(len(refs) for refs in self.collections.values())


@dataclass(slots=True)
class Sweep:
    refresh_state_uuid: UUID
    total_parts: int
    sweep_scope: list[str]


@dataclass(slots=True)
class RecordingSink:
    parts_per_upload: int | object = 1
    uploads: list[Upload] = field(default_factory=list)
    sweeps: list[Sweep] = field(default_factory=list)

    def upload(
        self,
        collections: Sequence[InventoryCollection],
        refresh_state_uuid: UUID,
        refresh_state_part_uuid: UUID,
    ) -> int:
        self.uploads.append(
            Upload(
                refresh_state_uuid=refresh_state_uuid,
                refresh_state_part_uuid=refresh_state_part_uuid,
                collections={
                    collection.name: [record.source_ref for record in collection.records]
                    for collection in collections
                },
            )
        )
        return self.parts_per_upload  # type: ignore[return-value]

    def sweep(
        self,
        refresh_state_uuid: UUID,
        total_parts: int,
        sweep_scope: Sequence[str],
    ) -> None:
        self.sweeps.append(Sweep(refresh_state_uuid, total_parts, list(sweep_scope)))


@dataclass(slots=True)
class RecordingMetrics:
    errors: int = 0
    parts: dict[str, int] = field(default_factory=dict)
    cycles: dict[str, int] = field(default_factory=dict)

    def record_error(self) -> None:
        self.errors += 1

    def record_part(self, entity_type: str, parts: int) -> None:
        self.parts[entity_type] = self.parts.get(entity_type, 0) + parts

    def record_cycle(self, entity_type: str) -> None:
        self.cycles[entity_type] = self.cycles.get(entity_type, 0) + 1


def sequential_ids() -> Callable[[], UUID]:
    counter = iter(range(1, 1_000_000))

    def next_id() -> UUID:
        return UUID(int=next(counter))

    return next_id
