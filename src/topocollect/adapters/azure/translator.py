"""Translate Azure payloads into inventory records."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from pydantic import BaseModel

from topocollect.domain.model import InventoryRecord, LazyReference

from .schema import (
    Disk,
    Location,
    NetworkInterface,
    NetworkSecurityGroup,
    PublicIpAddress,
    VirtualNetwork,
    VmBundle,
    VmSize,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from topocollect.domain.accumulator import BatchAccumulator
    from topocollect.domain.model import Scope

MEGABYTE: Final[int] = 1024**2
GIGABYTE: Final[int] = 1024**3

_RESOURCE_GROUP_NAME = re.compile(r"/subscriptions/[^/]+/resourceGroups/(?P<name>[^/]+)/.+", re.I)
_IP_CONFIGURATION = re.compile(r"(?P<nic>.+/networkInterfaces/[^/]+)/ipConfigurations/.+", re.I)


def source_ref(resource_id: str) -> str:
    """ARM ids are case-insensitive and reported in mixed case; store them lowercased."""

    return resource_id.lower()


def resource_group_name(resource_id: str) -> str | None:
    match = _RESOURCE_GROUP_NAME.match(resource_id)
    return match["name"].lower() if match else None


def network_interface_id(ip_configuration_id: str) -> str | None:
    match = _IP_CONFIGURATION.match(ip_configuration_id)
    return source_ref(match["nic"]) if match else None


def _scoped(scope: Scope, location: str | None) -> dict[str, object]:
    attributes: dict[str, object] = {}
    if location:
        attributes["source_region"] = LazyReference("source_regions", location)
    if scope.subscription_id:
        attributes["subscription"] = LazyReference("subscriptions", scope.subscription_id)
    return attributes


def parse_vm(bundle: VmBundle, scope: Scope, accumulator: BatchAccumulator) -> None:
    vm = bundle.vm
    ref = source_ref(vm.id)
    hardware = vm.properties.hardware_profile
    storage = vm.properties.storage_profile
    attributes: dict[str, object] = {
        "uid_ems": vm.properties.vm_id,
        "name": vm.name,
        "power_state": vm.power_state or "unknown",
        "resource_group": resource_group_name(vm.id),
        "mac_addresses": [
            nic.properties.mac_address
            for nic in bundle.network_interfaces
            if nic.properties.mac_address
        ],
        "os_type": storage.os_disk.os_type if storage and storage.os_disk else None,
        **_scoped(scope, vm.location),
    }
    if hardware and hardware.vm_size:
        attributes["flavor"] = LazyReference("flavors", hardware.vm_size)
    accumulator.add("vms", InventoryRecord(source_ref=ref, attributes=attributes))

    for key, value in sorted(vm.tags.items()):
        accumulator.add(
            "vm_tags",
            InventoryRecord(
                source_ref=f"{ref}/tags/{key.lower()}",
                attributes={"vm": LazyReference("vms", ref), "tag": key, "value": value},
            ),
        )


def parse_source_region(location: Location, scope: Scope, accumulator: BatchAccumulator) -> None:
    _ = scope
    accumulator.add(
        "source_regions",
        InventoryRecord(
            source_ref=location.name,
            attributes={"name": location.display_name or location.name, "endpoint": "compute"},
        ),
    )


def parse_flavor(size: VmSize, scope: Scope, accumulator: BatchAccumulator) -> None:
    _ = scope
    accumulator.add(
        "flavors",
        InventoryRecord(
            source_ref=size.name,
            attributes={
                "name": size.name,
                "cpus": size.number_of_cores,
                "memory": size.memory_in_mb * MEGABYTE if size.memory_in_mb is not None else None,
                "disk_size": (
                    size.resource_disk_size_in_mb * MEGABYTE
                    if size.resource_disk_size_in_mb is not None
                    else None
                ),
                "disk_count": size.max_data_disk_count,
                "extra": {"os_disk_size": size.os_disk_size_in_mb},
            },
        ),
    )


def parse_volume(disk: Disk, scope: Scope, accumulator: BatchAccumulator) -> None:
    ref = source_ref(disk.id)
    properties = disk.properties
    accumulator.add(
        "volumes",
        InventoryRecord(
            source_ref=ref,
            attributes={
                "name": disk.name,
                "state": (properties.disk_state or "unknown").lower(),
                "size": properties.disk_size_gb * GIGABYTE
                if properties.disk_size_gb is not None
                else None,
                "volume_type": disk.sku.name if disk.sku else None,
                "source_created_at": properties.time_created.isoformat()
                if properties.time_created
                else None,
                **_scoped(scope, disk.location),
            },
        ),
    )
    if disk.managed_by:
        vm_ref = source_ref(disk.managed_by)
        accumulator.add(
            "volume_attachments",
            InventoryRecord(
                source_ref=f"{ref}#{vm_ref}",
                attributes={
                    "volume": LazyReference("volumes", ref),
                    "vm": LazyReference("vms", vm_ref),
                },
            ),
        )


def parse_network(network: VirtualNetwork, scope: Scope, accumulator: BatchAccumulator) -> None:
    ref = source_ref(network.id)
    address_space = network.properties.address_space
    accumulator.add(
        "networks",
        InventoryRecord(
            source_ref=ref,
            attributes={
                "name": network.name,
                "cidr": ",".join(address_space.address_prefixes) if address_space else None,
                "status": _status(network.properties.provisioning_state),
                "resource_group": resource_group_name(network.id),
                **_scoped(scope, network.location),
            },
        ),
    )
    for subnet in network.properties.subnets:
        accumulator.add(
            "subnets",
            InventoryRecord(
                source_ref=source_ref(subnet.id),
                attributes={
                    "name": subnet.name,
                    "cidr": subnet.properties.address_prefix,
                    "status": _status(subnet.properties.provisioning_state),
                    "network": LazyReference("networks", ref),
                    **_scoped(scope, network.location),
                },
            ),
        )


def parse_network_adapter(
    nic: NetworkInterface, scope: Scope, accumulator: BatchAccumulator
) -> None:
    ref = source_ref(nic.id)
    properties = nic.properties
    attributes: dict[str, object] = {
        "name": nic.name,
        "mac_address": properties.mac_address,
        **_scoped(scope, nic.location),
    }
    if properties.virtual_machine:
        attributes["device"] = LazyReference("vms", source_ref(properties.virtual_machine.id))
    if properties.network_security_group:
        attributes["security_group"] = LazyReference(
            "security_groups", source_ref(properties.network_security_group.id)
        )
    accumulator.add("network_adapters", InventoryRecord(source_ref=ref, attributes=attributes))

    for configuration in properties.ip_configurations:
        ip_properties = configuration.properties
        if not ip_properties.private_ip_address:
            continue
        ip_attributes: dict[str, object] = {
            "ipaddress": ip_properties.private_ip_address,
            "kind": "private",
            "network_adapter": LazyReference("network_adapters", ref),
            **_scoped(scope, nic.location),
        }
        if ip_properties.subnet:
            ip_attributes["subnet"] = LazyReference("subnets", source_ref(ip_properties.subnet.id))
        accumulator.add(
            "ipaddresses",
            InventoryRecord(source_ref=source_ref(configuration.id), attributes=ip_attributes),
        )


def parse_security_group(
    group: NetworkSecurityGroup, scope: Scope, accumulator: BatchAccumulator
) -> None:
    accumulator.add(
        "security_groups",
        InventoryRecord(
            source_ref=source_ref(group.id),
            attributes={
                "name": group.name,
                "resource_group": resource_group_name(group.id),
                "extra": {
                    "rules": [
                        {"name": rule.name, **rule.properties}
                        for rule in group.properties.security_rules
                    ]
                },
                **_scoped(scope, group.location),
            },
        ),
    )


def parse_floating_ip(
    address: PublicIpAddress, scope: Scope, accumulator: BatchAccumulator
) -> None:
    attributes: dict[str, object] = {
        "name": address.name,
        "ipaddress": address.properties.ip_address,
        **_scoped(scope, address.location),
    }
    configuration = address.properties.ip_configuration
    nic_ref = network_interface_id(configuration.id) if configuration else None
    if nic_ref:
        attributes["network_adapter"] = LazyReference("network_adapters", nic_ref)
    accumulator.add(
        "floating_ips",
        InventoryRecord(source_ref=source_ref(address.id), attributes=attributes),
    )


def _status(provisioning_state: str | None) -> str:
    return "active" if (provisioning_state or "Succeeded") == "Succeeded" else "inactive"


type _Parser = Callable[[BaseModel, Scope, BatchAccumulator], None]

_PARSERS: Mapping[str, tuple[type[BaseModel], _Parser]] = {
    "vms": (VmBundle, parse_vm),  # type: ignore[dict-item]
    "source_regions": (Location, parse_source_region),  # type: ignore[dict-item]
    "flavors": (VmSize, parse_flavor),  # type: ignore[dict-item]
    "volumes": (Disk, parse_volume),  # type: ignore[dict-item]
    "networks": (VirtualNetwork, parse_network),  # type: ignore[dict-item]
    "network_adapters": (NetworkInterface, parse_network_adapter),  # type: ignore[dict-item]
    "security_groups": (NetworkSecurityGroup, parse_security_group),  # type: ignore[dict-item]
    "floating_ips": (PublicIpAddress, parse_floating_ip),  # type: ignore[dict-item]
}


class AzureNormalizer:
    """Dispatches raw Azure payloads to the parser registered for their entity type."""

    def supports(self, tag: str) -> bool:
        return tag in _PARSERS

    def normalize(
        self,
        tag: str,
        raw: object,
        scope: Scope,
        accumulator: BatchAccumulator,
    ) -> None:
        try:
            model, parser = _PARSERS[tag]
        except KeyError:
            raise KeyError(f"No Azure parser for entity type {tag!r}") from None
        payload = raw if isinstance(raw, model) else model.model_validate(raw)
        parser(payload, scope, accumulator)
