"""Prometheus metrics for the collector."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, start_http_server


class PrometheusMetrics:
    """Counters exposed on a dedicated registry, optionally served over HTTP."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.errors = Counter(
            "topocollect_errors_total",
            "Total number of failed refresh cycles",
            registry=self.registry,
        )
        self.parts = Counter(
            "topocollect_parts_uploaded_total",
            "Total number of inventory parts uploaded",
            ["entity_type"],
            registry=self.registry,
        )
        self.cycles = Counter(
            "topocollect_cycles_total",
            "Total number of completed refresh cycles",
            ["entity_type"],
            registry=self.registry,
        )

    def record_error(self) -> None:
        self.errors.inc()

    def record_part(self, entity_type: str, parts: int) -> None:
        self.parts.labels(entity_type=entity_type).inc(parts)

    def record_cycle(self, entity_type: str) -> None:
        self.cycles.labels(entity_type=entity_type).inc()

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:  # noqa: S104
        start_http_server(port, addr=addr, registry=self.registry)


class NullMetrics:
    def record_error(self) -> None:
        return None

    def record_part(self, entity_type: str, parts: int) -> None:
        _ = (entity_type, parts)

    def record_cycle(self, entity_type: str) -> None:
        _ = entity_type
