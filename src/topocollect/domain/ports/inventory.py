"""Port for the downstream inventory store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from topocollect.domain.model import InventoryCollection


@runtime_checkable
class InventorySink(Protocol):
    def upload(
        self,
        collections: Sequence[InventoryCollection],
        refresh_state_uuid: UUID,
        refresh_state_part_uuid: UUID,
    ) -> int:
        """Persist one part of a refresh cycle and return how many parts were written.

        A sink may split a large batch into several parts of its own; the caller adds
        the returned count to the cycle's part total.
        """
        ...

    def sweep(
        self,
        refresh_state_uuid: UUID,
        total_parts: int,
        sweep_scope: Sequence[str],
    ) -> None:
        """Deactivate records of ``sweep_scope`` not refreshed by ``refresh_state_uuid``."""
        ...


__all__ = ["InventorySink"]
