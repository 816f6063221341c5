from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from topocollect.config.azure import AzureConfig, default_azure_resilience
from topocollect.config.collector import CollectorConfig
from topocollect.domain.entity_types import Domain, EntityType, EntityTypeRegistry
from topocollect.domain.refresh_cycle import CycleOrchestrator

from tests.support.fakes import (
    FakeFetchers,
    FakeNormalizer,
    FakeScopeSource,
    RecordingMetrics,
    RecordingSink,
    sequential_ids,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def azure_config() -> AzureConfig:
    return AzureConfig(
        client_id="client-id",
        client_secret="client-secret",
        tenant_id="tenant-id",
        resilience=default_azure_resilience(),
    )


@pytest.fixture
def collector_config() -> CollectorConfig:
    return CollectorConfig(default_limit=100, poll_time=0.0, continuous=False)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture
def make_orchestrator(
    sink: RecordingSink, metrics: RecordingMetrics
) -> Callable[..., CycleOrchestrator]:
    def factory(
        *,
        entity_types: list[EntityType],
        scope_source: FakeScopeSource,
        fetchers: FakeFetchers,
        normalizer: FakeNormalizer | None = None,
    ) -> CycleOrchestrator:
        return CycleOrchestrator(
            registry=EntityTypeRegistry.of(entity_types),
            scope_source=scope_source,
            fetchers={Domain.COMPUTE: fetchers, Domain.NETWORK: fetchers},
            normalizer=normalizer or FakeNormalizer(),
            sink=sink,
            metrics=metrics,
            id_factory=sequential_ids(),
        )

    return factory
