"""Collector loop driving refresh cycles for every registered entity type."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from topocollect.domain.entity_types import EntityTypeRegistry
    from topocollect.domain.model import RefreshCycleResult
    from topocollect.domain.ports import MetricsSink
    from topocollect.domain.refresh_cycle import CycleOrchestrator

log = getLogger(__name__)


class CollectorState(StrEnum):
    IDLE = "idle"
    COLLECTING = "collecting"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


@dataclass(slots=True)
class CollectorRunSummary:
    passes: int = 0
    cycles: int = 0
    failures: int = 0
    last_results: dict[str, RefreshCycleResult] = field(default_factory=dict)


class CollectorLoop:
    """Runs a refresh cycle per top-level entity type, pass after pass.

    In continuous mode the loop sleeps ``poll_time`` seconds between passes until
    :meth:`stop` is called; in single-shot mode it stops after the first pass. A
    failing entity type is logged and counted, and the pass carries on with the
    next type. The stop request is only honoured between passes, so a running cycle
    always finishes (or fails) first.
    """

    def __init__(
        self,
        *,
        orchestrator: CycleOrchestrator,
        registry: EntityTypeRegistry,
        metrics: MetricsSink,
        poll_time: float,
        continuous: bool = True,
        sleep: Callable[[float], object] | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.registry = registry
        self.metrics = metrics
        self.poll_time = poll_time
        self.continuous = continuous
        self._stop_requested = threading.Event()
        self._sleep = sleep or self._stop_requested.wait
        self._state = CollectorState.IDLE

    @property
    def state(self) -> CollectorState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._stop_requested.is_set()

    def stop(self) -> None:
        """Ask the loop to exit before its next pass (safe to call from a signal handler)."""

        self._stop_requested.set()

    def collect(self) -> CollectorRunSummary:
        summary = CollectorRunSummary()
        while not self.finished:
            self._state = CollectorState.COLLECTING
            summary.passes += 1
            self._run_pass(summary)

            if self.continuous:
                self._state = CollectorState.SLEEPING
                log.debug("Sleeping %.1fs before the next pass", self.poll_time)
                self._sleep(self.poll_time)
            else:
                self.stop()

        self._state = CollectorState.STOPPED
        log.info(
            "Collector stopped after %d pass(es): cycles=%d, failures=%d",
            summary.passes,
            summary.cycles,
            summary.failures,
        )
        return summary

    def _run_pass(self, summary: CollectorRunSummary) -> None:
        for entity_type in self.registry.top_level_types():
            try:
                result = self.orchestrator.process_entity(entity_type.tag)
            except Exception:
                log.exception("Refresh of %s failed", entity_type.tag)
                self.metrics.record_error()
                summary.failures += 1
            else:
                summary.cycles += 1
                summary.last_results[entity_type.tag] = result
