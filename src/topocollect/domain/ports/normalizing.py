"""Port for turning raw provider records into canonical inventory records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from topocollect.domain.accumulator import BatchAccumulator
    from topocollect.domain.model import Scope


@runtime_checkable
class Normalizer(Protocol):
    def supports(self, tag: str) -> bool: ...

    def normalize(
        self,
        tag: str,
        raw: object,
        scope: Scope,
        accumulator: BatchAccumulator,
    ) -> None:
        """Append zero or more records derived from ``raw`` to ``accumulator``."""
        ...


__all__ = ["Normalizer"]
