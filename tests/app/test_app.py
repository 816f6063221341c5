from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from topocollect.adapters.azure import AzureClient
from topocollect.adapters.sqlalchemy import SqlAlchemyInventorySink
from topocollect.app import build_collector, build_sink, collect_inventory
from topocollect.config import CollectorConfig, ConfigurationError, MissingConfigurationError

from tests.support.fakes import RecordingMetrics, RecordingSink
from tests.support.http import FakeArm, mock_client_factory

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from topocollect.config import AzureConfig

SUB = "/subscriptions/sub-1"
DISKS = f"{SUB}/resourceGroups/rg/providers/Microsoft.Compute/disks"


def _client(azure_config: AzureConfig, arm: FakeArm) -> AzureClient:
    return AzureClient(azure_config, client_factory=mock_client_factory(arm))


def test_build_collector_restricts_top_level_types(
    azure_config: AzureConfig, collector_config: CollectorConfig
) -> None:
    collector = build_collector(
        collector_config,
        azure_client=_client(azure_config, FakeArm()),
        sink=RecordingSink(),
        entity_types=["network_adapters"],
    )

    assert [item.tag for item in collector.registry.top_level_types()] == ["network_adapters"]
    assert collector.registry.get("floating_ips").batch_limit == 100
    assert collector.continuous is False


def test_build_collector_rejects_unknown_entity_type(
    azure_config: AzureConfig, collector_config: CollectorConfig
) -> None:
    with pytest.raises(ConfigurationError):
        build_collector(
            collector_config,
            azure_client=_client(azure_config, FakeArm()),
            sink=RecordingSink(),
            entity_types=["load_balancers"],
        )


def test_build_collector_rejects_related_only_entity_type(
    azure_config: AzureConfig, collector_config: CollectorConfig
) -> None:
    with pytest.raises(ConfigurationError, match="related"):
        build_collector(
            collector_config,
            azure_client=_client(azure_config, FakeArm()),
            sink=RecordingSink(),
            entity_types=["floating_ips"],
        )


def test_build_sink_requires_ingress_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("INGRESS_API_URL", raising=False)
    monkeypatch.delenv("SOURCE_UID", raising=False)

    with pytest.raises(MissingConfigurationError):
        build_sink("ingress")


def test_build_sink_opens_local_store(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")

    assert isinstance(build_sink("sqlite"), SqlAlchemyInventorySink)


def test_single_pass_collects_volumes_into_local_store(
    azure_config: AzureConfig, sqlite_engine: Engine
) -> None:
    arm = FakeArm()
    arm.add("/subscriptions", {"value": [{"subscriptionId": "sub-1"}]})
    arm.add(
        f"{SUB}/providers/Microsoft.Compute/disks",
        {
            "value": [
                {"id": f"{DISKS}/{name}", "name": name}
                for name in ("os", "data")
            ]
        },
    )
    store = SqlAlchemyInventorySink(sqlite_engine)
    metrics = RecordingMetrics()
    collector = build_collector(
        CollectorConfig(default_limit=1, continuous=False),
        azure_client=_client(azure_config, arm),
        sink=store,
        metrics=metrics,
        entity_types=["volumes"],
    )

    summary = collect_inventory(collector)

    assert summary.failures == 0
    result = summary.last_results["volumes"]
    assert result.total_parts == 2
    assert result.swept
    assert metrics.cycles == {"volumes": 1}
    assert store.active_source_refs("volumes") == {
        f"{SUB}/resourcegroups/rg/providers/microsoft.compute/disks/os",
        f"{SUB}/resourcegroups/rg/providers/microsoft.compute/disks/data",
    }
