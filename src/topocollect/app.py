"""Application wiring entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from topocollect.adapters.azure import (
    AzureClient,
    AzureNormalizer,
    AzureSubscriptionScopes,
    ComputeFetchers,
    NetworkFetchers,
)
from topocollect.adapters.ingress import IngressApiSink
from topocollect.adapters.metrics import NullMetrics
from topocollect.adapters.sqlalchemy import SqlAlchemyInventorySink
from topocollect.config import (
    ConfigurationError,
    get_azure_config,
    get_database_config,
    get_ingress_config,
)
from topocollect.domain.entity_types import Domain, default_registry
from topocollect.domain.refresh_cycle import CycleOrchestrator
from topocollect.domain.scheduler import CollectorLoop

if TYPE_CHECKING:
    from collections.abc import Sequence

    from topocollect.config import CollectorConfig
    from topocollect.domain.ports import InventorySink, MetricsSink
    from topocollect.domain.scheduler import CollectorRunSummary

SinkKind = Literal["ingress", "sqlite"]

log = getLogger(__name__)


def build_sink(kind: SinkKind) -> InventorySink:
    if kind == "ingress":
        return IngressApiSink(get_ingress_config())
    if kind == "sqlite":
        return SqlAlchemyInventorySink.from_uri(get_database_config().uri)
    raise ConfigurationError(f"Unsupported inventory sink: {kind}")


def build_collector(
    config: CollectorConfig,
    *,
    azure_client: AzureClient | None = None,
    sink: InventorySink | None = None,
    sink_kind: SinkKind = "ingress",
    metrics: MetricsSink | None = None,
    entity_types: Sequence[str] | None = None,
) -> CollectorLoop:
    """Wire adapters into a collector loop, failing fast on configuration gaps."""

    registry = default_registry(config)
    if entity_types:
        registry = registry.restricted_to(entity_types)

    client = azure_client or AzureClient(get_azure_config())
    fetchers = {
        Domain.COMPUTE: ComputeFetchers(client),
        Domain.NETWORK: NetworkFetchers(client),
    }
    normalizer = AzureNormalizer()
    registry.validate(fetchers, normalizer)

    effective_metrics = metrics or NullMetrics()
    orchestrator = CycleOrchestrator(
        registry=registry,
        scope_source=AzureSubscriptionScopes(client),
        fetchers=fetchers,
        normalizer=normalizer,
        sink=sink or build_sink(sink_kind),
        metrics=effective_metrics,
    )
    return CollectorLoop(
        orchestrator=orchestrator,
        registry=registry,
        metrics=effective_metrics,
        poll_time=config.poll_time,
        continuous=config.continuous,
    )


def collect_inventory(collector: CollectorLoop) -> CollectorRunSummary:
    entity_types = [entity_type.tag for entity_type in collector.registry.top_level_types()]
    log.info(
        "Starting collector: entity_types=%s, poll_time=%s, continuous=%s",
        entity_types,
        collector.poll_time,
        collector.continuous,
    )
    return collector.collect()
