from __future__ import annotations

import pytest

from topocollect.config.collector import CollectorConfig
from topocollect.config.errors import ConfigurationError
from topocollect.domain.entity_types import (
    Domain,
    EntityType,
    EntityTypeRegistry,
    default_registry,
)

from tests.support.fakes import FakeFetchers, FakeNormalizer


def test_default_registry_matches_azure_layout() -> None:
    registry = default_registry(CollectorConfig(default_limit=500, limits={"vms": 50}))

    assert [entity_type.tag for entity_type in registry.top_level_types()] == [
        "vms",
        "source_regions",
        "flavors",
        "volumes",
        "networks",
        "network_adapters",
        "security_groups",
    ]
    assert "floating_ips" in registry
    assert [entity_type.tag for entity_type in registry.related_types("network_adapters")] == [
        "floating_ips"
    ]
    assert registry.related_types("vms") == []
    assert registry.batch_limit("vms") == 50
    assert registry.batch_limit("flavors") == 500
    assert registry.domain("volumes") is Domain.COMPUTE
    assert registry.domain("floating_ips") is Domain.NETWORK
    assert registry.get("vms").collections == ("vms", "vm_tags")
    assert registry.get("flavors").collections == ("flavors",)


def test_limits_for_unknown_types_are_rejected() -> None:
    with pytest.raises(ConfigurationError, match="unknown entity types"):
        default_registry(CollectorConfig(limits={"load_balancers": 10}))


@pytest.mark.parametrize("limit", [0, -5])
def test_non_positive_batch_limit_is_rejected(limit: int) -> None:
    with pytest.raises(ConfigurationError):
        EntityType(tag="vms", domain=Domain.COMPUTE, batch_limit=limit)


def test_unknown_and_duplicate_types_are_configuration_errors() -> None:
    registry = EntityTypeRegistry.of([EntityType(tag="vms", domain=Domain.COMPUTE, batch_limit=1)])

    with pytest.raises(ConfigurationError):
        registry.get("load_balancers")
    with pytest.raises(ConfigurationError):
        registry.register(EntityType(tag="vms", domain=Domain.NETWORK, batch_limit=1))


def test_validate_reports_every_gap() -> None:
    registry = EntityTypeRegistry.of(
        [
            EntityType(tag="vms", domain=Domain.COMPUTE, batch_limit=1, related=("tags",)),
            EntityType(tag="networks", domain=Domain.NETWORK, batch_limit=1),
            EntityType(tag="flavors", domain=Domain.COMPUTE, batch_limit=1),
        ]
    )
    compute = FakeFetchers(records={"vms": {}})

    with pytest.raises(ConfigurationError) as excinfo:
        registry.validate({Domain.COMPUTE: compute}, FakeNormalizer(unsupported={"vms"}))

    message = str(excinfo.value)
    assert "related entity type 'tags'" in message
    assert "no fetchers for domain network" in message
    assert "flavors: domain compute cannot fetch this type" in message
    assert "vms: no normalizer" in message


def test_validate_accepts_complete_registry() -> None:
    registry = default_registry(CollectorConfig())
    fetchers = FakeFetchers(records={entity_type.tag: {} for entity_type in registry})

    registry.validate(
        {Domain.COMPUTE: fetchers, Domain.NETWORK: fetchers},
        FakeNormalizer(),
    )


def test_restricted_registry_keeps_related_types_off_the_top_level() -> None:
    registry = default_registry(CollectorConfig()).restricted_to(["network_adapters", "vms"])

    assert [entity_type.tag for entity_type in registry.top_level_types()] == [
        "vms",
        "network_adapters",
    ]
    assert [entity_type.tag for entity_type in registry] == [
        "vms",
        "network_adapters",
        "floating_ips",
    ]
    assert registry.related_types("network_adapters")[0].top_level is False


def test_related_only_types_cannot_be_selected() -> None:
    with pytest.raises(ConfigurationError):
        default_registry(CollectorConfig()).restricted_to(["floating_ips"])
