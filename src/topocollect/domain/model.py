"""Value objects shared by the refresh-cycle protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class Scope:
    """An isolation boundary a fetch is enumerated over (one subscription, one tenant)."""

    attributes: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def of(cls, **attributes: str) -> Scope:
        return cls(attributes=MappingProxyType(dict(attributes)))

    @property
    def subscription_id(self) -> str | None:
        return self.attributes.get("subscription_id")

    def __str__(self) -> str:
        return ", ".join(f"{key}={value}" for key, value in sorted(self.attributes.items()))


@dataclass(frozen=True, slots=True)
class LazyReference:
    """Points at a record of another collection by its provider reference."""

    collection: str
    source_ref: str


@dataclass(slots=True)
class InventoryRecord:
    """One canonical entity keyed by its provider-assigned reference."""

    source_ref: str
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class InventoryCollection:
    """A named, ordered group of records of one kind."""

    name: str
    records: list[InventoryRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def append(self, record: InventoryRecord) -> None:
        self.records.append(record)


@dataclass(slots=True)
class RefreshCycle:
    """Running state of one refresh cycle for a primary entity type."""

    entity_type: str
    refresh_state_uuid: UUID
    sweep_scope: set[str]
    total_parts: int = 0
    records_collected: int = 0


@dataclass(frozen=True, slots=True)
class RefreshCycleResult:
    """Outcome of a completed refresh cycle."""

    entity_type: str
    refresh_state_uuid: UUID
    total_parts: int
    records_collected: int
    swept_scope: tuple[str, ...] | None

    @property
    def swept(self) -> bool:
        return self.swept_scope is not None
