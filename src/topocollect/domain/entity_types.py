"""Static registry of the entity types a collector refreshes.

Every entity type carries the domain whose fetcher family serves it, the number of
records that triggers a flush and the related types that have to be collected and
swept under the same refresh cycle. The registry is resolved once at startup;
:meth:`EntityTypeRegistry.validate` turns any gap into a ``ConfigurationError``
before the collector loop runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from topocollect.config.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from topocollect.config.collector import CollectorConfig
    from topocollect.domain.ports.fetching import FetcherFamily
    from topocollect.domain.ports.normalizing import Normalizer


class Domain(StrEnum):
    COMPUTE = "compute"
    NETWORK = "network"


@dataclass(frozen=True, slots=True)
class EntityType:
    tag: str
    domain: Domain
    batch_limit: int
    related: tuple[str, ...] = ()
    collections: tuple[str, ...] = ()
    top_level: bool = True

    def __post_init__(self) -> None:
        if self.batch_limit <= 0:
            raise ConfigurationError(f"Batch limit for {self.tag!r} must be positive")
        if not self.collections:
            object.__setattr__(self, "collections", (self.tag,))


@dataclass(slots=True)
class EntityTypeRegistry:
    _types: dict[str, EntityType] = field(default_factory=dict)

    @classmethod
    def of(cls, entity_types: Iterable[EntityType]) -> EntityTypeRegistry:
        registry = cls()
        for entity_type in entity_types:
            registry.register(entity_type)
        return registry

    def register(self, entity_type: EntityType) -> None:
        if entity_type.tag in self._types:
            raise ConfigurationError(f"Entity type {entity_type.tag!r} registered twice")
        self._types[entity_type.tag] = entity_type

    def __contains__(self, tag: object) -> bool:
        return tag in self._types

    def __iter__(self) -> Iterator[EntityType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def get(self, tag: str) -> EntityType:
        try:
            return self._types[tag]
        except KeyError:
            raise ConfigurationError(f"Unknown entity type: {tag}") from None

    def related_types(self, primary: str) -> list[EntityType]:
        return [self.get(tag) for tag in self.get(primary).related]

    def batch_limit(self, tag: str) -> int:
        return self.get(tag).batch_limit

    def domain(self, tag: str) -> Domain:
        return self.get(tag).domain

    def top_level_types(self) -> list[EntityType]:
        return [entity_type for entity_type in self._types.values() if entity_type.top_level]

    def restricted_to(self, tags: Iterable[str]) -> EntityTypeRegistry:
        """Return a registry whose top-level pass only covers ``tags``.

        Related types of the selected tags stay registered so cycles remain complete.
        """

        selected = list(dict.fromkeys(tags))
        for tag in selected:
            if not self.get(tag).top_level:
                raise ConfigurationError(f"{tag!r} is only collected as a related entity type")
        restricted = EntityTypeRegistry()
        for entity_type in self._types.values():
            keep_top_level = entity_type.tag in selected
            if keep_top_level or any(entity_type.tag in self.get(tag).related for tag in selected):
                restricted.register(
                    EntityType(
                        tag=entity_type.tag,
                        domain=entity_type.domain,
                        batch_limit=entity_type.batch_limit,
                        related=entity_type.related,
                        collections=entity_type.collections,
                        top_level=keep_top_level,
                    )
                )
        return restricted

    def validate(
        self,
        fetchers: Mapping[Domain, FetcherFamily],
        normalizer: Normalizer,
    ) -> None:
        problems: list[str] = []
        for entity_type in self._types.values():
            problems.extend(
                f"{entity_type.tag}: related entity type {tag!r} is not registered"
                for tag in entity_type.related
                if tag not in self._types
            )
            family = fetchers.get(entity_type.domain)
            if family is None:
                problems.append(f"{entity_type.tag}: no fetchers for domain {entity_type.domain}")
            elif family.fetcher_for(entity_type.tag) is None:
                problems.append(
                    f"{entity_type.tag}: domain {entity_type.domain} cannot fetch this type"
                )
            if not normalizer.supports(entity_type.tag):
                problems.append(f"{entity_type.tag}: no normalizer")
        if problems:
            raise ConfigurationError("Invalid entity type registry: " + "; ".join(problems))


COMPUTE_ENTITY_TYPES = ("vms", "source_regions", "flavors", "volumes")
NETWORK_ENTITY_TYPES = ("networks", "network_adapters", "security_groups")

# Entities that are always refreshed and swept together with their primary, e.g.
# floating IPs reference the network adapters they are attached to.
RELATED_ENTITY_TYPES: dict[str, tuple[str, ...]] = {
    "network_adapters": ("floating_ips",),
}

# Extra collections a parser fills while processing a type.
ENTITY_COLLECTIONS: dict[str, tuple[str, ...]] = {
    "vms": ("vms", "vm_tags"),
    "volumes": ("volumes", "volume_attachments"),
    "networks": ("networks", "subnets"),
    "network_adapters": ("network_adapters", "ipaddresses"),
}


def default_registry(config: CollectorConfig) -> EntityTypeRegistry:
    """Build the Azure registry with batch limits taken from ``config``."""

    unknown = sorted(
        set(config.limits)
        - {*COMPUTE_ENTITY_TYPES, *NETWORK_ENTITY_TYPES, "floating_ips"}
    )
    if unknown:
        raise ConfigurationError(f"Batch limits given for unknown entity types: {unknown}")

    def build(tag: str, domain: Domain, *, top_level: bool = True) -> EntityType:
        return EntityType(
            tag=tag,
            domain=domain,
            batch_limit=config.limit_for(tag),
            related=RELATED_ENTITY_TYPES.get(tag, ()),
            collections=ENTITY_COLLECTIONS.get(tag, (tag,)),
            top_level=top_level,
        )

    return EntityTypeRegistry.of(
        [
            *(build(tag, Domain.COMPUTE) for tag in COMPUTE_ENTITY_TYPES),
            *(build(tag, Domain.NETWORK) for tag in NETWORK_ENTITY_TYPES),
            build("floating_ips", Domain.NETWORK, top_level=False),
        ]
    )
