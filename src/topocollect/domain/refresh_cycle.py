"""Refresh-cycle orchestration: batching into parts and sweeping.

One call to :meth:`CycleOrchestrator.process_entity` is one refresh cycle for a
primary entity type. Records of the primary type and its related types are
normalized into a shared :class:`BatchAccumulator`; whenever the running record
count reaches the batch limit of the type being collected, the accumulated
collections are uploaded as one part. After every scope has been visited the
remainder is flushed and, provided at least one part was uploaded, the sink is
asked to sweep every collection the cycle touched.

A failure anywhere aborts the cycle: parts already uploaded stay uploaded, but
no sweep is issued, so the sink never deactivates records on a partial view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from topocollect.config.errors import ConfigurationError
from topocollect.domain.accumulator import BatchAccumulator
from topocollect.domain.errors import ProtocolViolation
from topocollect.domain.model import RefreshCycle, RefreshCycleResult

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from topocollect.domain.entity_types import Domain, EntityType, EntityTypeRegistry
    from topocollect.domain.model import Scope
    from topocollect.domain.ports import (
        FetcherFamily,
        InventorySink,
        MetricsSink,
        Normalizer,
        RawFetcher,
        ScopeSource,
    )

log = getLogger(__name__)


@dataclass(slots=True)
class _PendingBatch:
    accumulator: BatchAccumulator = field(default_factory=BatchAccumulator)
    count: int = 0

    def reset(self) -> None:
        self.accumulator = BatchAccumulator()
        self.count = 0


class CycleOrchestrator:
    def __init__(
        self,
        *,
        registry: EntityTypeRegistry,
        scope_source: ScopeSource,
        fetchers: Mapping[Domain, FetcherFamily],
        normalizer: Normalizer,
        sink: InventorySink,
        metrics: MetricsSink,
        id_factory: Callable[[], UUID] = uuid4,
    ) -> None:
        self.registry = registry
        self.scope_source = scope_source
        self.fetchers = fetchers
        self.normalizer = normalizer
        self.sink = sink
        self.metrics = metrics
        self._new_id = id_factory

    def process_entity(self, tag: str) -> RefreshCycleResult:
        """Run one refresh cycle for the primary entity type ``tag``."""

        primary = self.registry.get(tag)
        related = self.registry.related_types(tag)
        cycle = RefreshCycle(
            entity_type=tag,
            refresh_state_uuid=self._new_id(),
            sweep_scope=set(primary.collections),
        )
        batch = _PendingBatch()
        log.info("Collecting %s with refresh_state_uuid=%s...", tag, cycle.refresh_state_uuid)

        for scope in self.scope_source.scopes():
            self._collect_and_accumulate(cycle, batch, primary, scope)
            for related_type in related:
                self._collect_and_accumulate(cycle, batch, related_type, scope)

        if batch.count > 0:
            self._flush(cycle, batch)

        log.info(
            "Collecting %s with refresh_state_uuid=%s...Complete - Parts [%d], Records [%d]",
            tag,
            cycle.refresh_state_uuid,
            cycle.total_parts,
            cycle.records_collected,
        )

        swept_scope = self._sweep(cycle)
        self.metrics.record_cycle(tag)
        return RefreshCycleResult(
            entity_type=tag,
            refresh_state_uuid=cycle.refresh_state_uuid,
            total_parts=cycle.total_parts,
            records_collected=cycle.records_collected,
            swept_scope=swept_scope,
        )

    def _collect_and_accumulate(
        self,
        cycle: RefreshCycle,
        batch: _PendingBatch,
        entity_type: EntityType,
        scope: Scope,
    ) -> None:
        fetch = self._fetcher(entity_type)
        for raw in fetch(scope):
            self.normalizer.normalize(entity_type.tag, raw, scope, batch.accumulator)
            batch.count += 1
            cycle.records_collected += 1
            if batch.count >= entity_type.batch_limit:
                self._flush(cycle, batch)

    def _flush(self, cycle: RefreshCycle, batch: _PendingBatch) -> None:
        refresh_state_part_uuid = self._new_id()
        collections = batch.accumulator.snapshot()
        parts = self.sink.upload(collections, cycle.refresh_state_uuid, refresh_state_part_uuid)
        _check_parts_written(parts, has_records=batch.accumulator.record_count() > 0)

        cycle.total_parts += parts
        cycle.sweep_scope.update(collection.name for collection in collections)
        self.metrics.record_part(cycle.entity_type, parts)
        log.debug(
            "Uploaded %d record(s) of %s as refresh_state_part_uuid=%s (%d part(s)) "
            "for refresh_state_uuid=%s",
            batch.count,
            cycle.entity_type,
            refresh_state_part_uuid,
            parts,
            cycle.refresh_state_uuid,
        )
        batch.reset()

    def _sweep(self, cycle: RefreshCycle) -> tuple[str, ...] | None:
        if cycle.total_parts == 0:
            log.info(
                "Nothing collected for %s with refresh_state_uuid=%s, skipping sweep",
                cycle.entity_type,
                cycle.refresh_state_uuid,
            )
            return None

        sweep_scope = tuple(sorted(cycle.sweep_scope))
        log.info(
            "Sweeping inactive records for %s with refresh_state_uuid=%s...",
            list(sweep_scope),
            cycle.refresh_state_uuid,
        )
        self.sink.sweep(cycle.refresh_state_uuid, cycle.total_parts, sweep_scope)
        log.info(
            "Sweeping inactive records for %s with refresh_state_uuid=%s...Complete",
            list(sweep_scope),
            cycle.refresh_state_uuid,
        )
        return sweep_scope

    def _fetcher(self, entity_type: EntityType) -> RawFetcher:
        family = self.fetchers.get(entity_type.domain)
        fetch = family.fetcher_for(entity_type.tag) if family is not None else None
        if fetch is None:
            raise ConfigurationError(
                f"No fetcher for {entity_type.tag!r} in domain {entity_type.domain}"
            )
        return fetch


def _check_parts_written(parts: object, *, has_records: bool) -> None:
    if isinstance(parts, bool) or not isinstance(parts, int):
        raise ProtocolViolation(f"Inventory sink reported a non-integer part count: {parts!r}")
    if parts < 0 or (has_records and parts == 0):
        raise ProtocolViolation(f"Inventory sink reported {parts} part(s) for a non-empty batch")
