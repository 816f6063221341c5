"""Scope enumeration and per-entity-type fetchers for Azure subscriptions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from topocollect.domain.model import Scope

from .schema import (
    Disk,
    GenericResource,
    Location,
    NetworkInterface,
    NetworkSecurityGroup,
    PublicIpAddress,
    ResourceProvider,
    Subscription,
    VirtualMachine,
    VirtualNetwork,
    VmBundle,
    VmSize,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    from pydantic import BaseModel

    from topocollect.domain.ports.fetching import RawFetcher

    from .client import AzureClient, AzureSession

log = getLogger(__name__)

VIRTUAL_MACHINE_FILTER = "resourceType eq 'Microsoft.Compute/virtualMachines'"


def _subscription_path(scope: Scope) -> str:
    if not scope.subscription_id:
        raise ValueError(f"Scope has no subscription_id: {scope}")
    return f"/subscriptions/{scope.subscription_id}"


def provider_region(provider: ResourceProvider) -> str | None:
    """Return the first region the provider reports, in ARM's short form (``eastus``)."""

    for resource_type in provider.resource_types:
        if resource_type.locations:
            return resource_type.locations[0].replace(" ", "").lower()
    return None


@dataclass(slots=True)
class AzureSubscriptionScopes:
    """One scope per subscription visible to the service principal."""

    client: AzureClient

    def scopes(self) -> list[Scope]:
        with self.client.session() as session:
            subscriptions = [
                Subscription.model_validate(item)
                for item in session.iter_list(
                    "/subscriptions",
                    api_version=self.client.config.api_version("Microsoft.Subscription"),
                )
            ]
        log.debug("Found %d subscription(s)", len(subscriptions))
        return [Scope.of(subscription_id=item.subscription_id) for item in subscriptions]


class _AzureFetcherFamily(ABC):
    def __init__(self, client: AzureClient) -> None:
        self.client = client

    @abstractmethod
    def _fetchers(self) -> Mapping[str, Callable[[Scope], Iterator[BaseModel]]]:
        """Map each entity type tag this family serves to its fetch method."""

    def fetcher_for(self, tag: str) -> RawFetcher | None:
        return self._fetchers().get(tag)

    def _api(self, namespace: str) -> str:
        return self.client.config.api_version(namespace)

    def _list[TModel: BaseModel](
        self,
        session: AzureSession,
        path: str,
        model: type[TModel],
        *,
        namespace: str,
        params: Mapping[str, str] | None = None,
    ) -> Iterator[TModel]:
        for item in session.iter_list(path, api_version=self._api(namespace), params=params):
            yield model.model_validate(item)


class ComputeFetchers(_AzureFetcherFamily):
    def _fetchers(self) -> Mapping[str, Callable[[Scope], Iterator[BaseModel]]]:
        return {
            "vms": self.vms,
            "source_regions": self.source_regions,
            "flavors": self.flavors,
            "volumes": self.volumes,
        }

    def source_regions(self, scope: Scope) -> Iterator[Location]:
        with self.client.session() as session:
            yield from self._list(
                session,
                f"{_subscription_path(scope)}/locations",
                Location,
                namespace="Microsoft.Subscription",
            )

    def flavors(self, scope: Scope) -> Iterator[VmSize]:
        base = _subscription_path(scope)
        with self.client.session() as session:
            provider = ResourceProvider.model_validate(
                session.get(
                    f"{base}/providers/Microsoft.Compute",
                    api_version=self._api("Microsoft.Resources"),
                )
            )
            region = provider_region(provider)
            if region is None:
                log.warning("Microsoft.Compute reports no regions in %s", scope)
                return
            yield from self._list(
                session,
                f"{base}/providers/Microsoft.Compute/locations/{region}/vmSizes",
                VmSize,
                namespace="Microsoft.Compute",
            )

    def vms(self, scope: Scope) -> Iterator[VmBundle]:
        with self.client.session() as session:
            resources = self._list(
                session,
                f"{_subscription_path(scope)}/resources",
                GenericResource,
                namespace="Microsoft.Resources",
                params={"$filter": VIRTUAL_MACHINE_FILTER},
            )
            for resource in resources:
                vm = VirtualMachine.model_validate(
                    session.get(
                        resource.id,
                        api_version=self._api("Microsoft.Compute"),
                        params={"$expand": "instanceView"},
                    )
                )
                network_interfaces = [
                    NetworkInterface.model_validate(
                        session.get(nic_id, api_version=self._api("Microsoft.Network"))
                    )
                    for nic_id in vm.network_interface_ids
                ]
                yield VmBundle(vm=vm, network_interfaces=network_interfaces)

    def volumes(self, scope: Scope) -> Iterator[Disk]:
        with self.client.session() as session:
            yield from self._list(
                session,
                f"{_subscription_path(scope)}/providers/Microsoft.Compute/disks",
                Disk,
                namespace="Microsoft.Compute/disks",
            )


class NetworkFetchers(_AzureFetcherFamily):
    def _fetchers(self) -> Mapping[str, Callable[[Scope], Iterator[BaseModel]]]:
        return {
            "networks": self.networks,
            "network_adapters": self.network_adapters,
            "security_groups": self.security_groups,
            "floating_ips": self.floating_ips,
        }

    def _network_list[TModel: BaseModel](
        self, scope: Scope, resource: str, model: type[TModel]
    ) -> Iterator[TModel]:
        with self.client.session() as session:
            yield from self._list(
                session,
                f"{_subscription_path(scope)}/providers/Microsoft.Network/{resource}",
                model,
                namespace="Microsoft.Network",
            )

    def networks(self, scope: Scope) -> Iterator[VirtualNetwork]:
        return self._network_list(scope, "virtualNetworks", VirtualNetwork)

    def network_adapters(self, scope: Scope) -> Iterator[NetworkInterface]:
        return self._network_list(scope, "networkInterfaces", NetworkInterface)

    def security_groups(self, scope: Scope) -> Iterator[NetworkSecurityGroup]:
        return self._network_list(scope, "networkSecurityGroups", NetworkSecurityGroup)

    def floating_ips(self, scope: Scope) -> Iterator[PublicIpAddress]:
        return self._network_list(scope, "publicIPAddresses", PublicIpAddress)
