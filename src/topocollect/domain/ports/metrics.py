"""Port for collector metrics."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsSink(Protocol):
    def record_error(self) -> None: ...

    def record_part(self, entity_type: str, parts: int) -> None: ...

    def record_cycle(self, entity_type: str) -> None: ...


__all__ = ["MetricsSink"]
