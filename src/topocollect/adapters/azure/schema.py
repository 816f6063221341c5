"""Pydantic models describing the Azure Resource Manager payloads we consume."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ArmBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ResourceId(ArmBaseModel):
    id: str


class ListPage(ArmBaseModel):
    value: list[dict[str, object]] = Field(default_factory=list)
    next_link: str | None = Field(default=None, alias="nextLink")


class ArmErrorDetail(ArmBaseModel):
    code: str
    message: str


class ArmErrorResponse(ArmBaseModel):
    error: ArmErrorDetail


class TokenResponse(ArmBaseModel):
    access_token: str
    expires_in: int = 3599


# Subscriptions and compute ----------------------------------------------------


class Subscription(ArmBaseModel):
    subscription_id: str = Field(alias="subscriptionId")
    display_name: str | None = Field(default=None, alias="displayName")
    state: str | None = None


class Location(ArmBaseModel):
    id: str | None = None
    name: str
    display_name: str | None = Field(default=None, alias="displayName")


class ProviderResourceType(ArmBaseModel):
    resource_type: str = Field(alias="resourceType")
    locations: list[str] = Field(default_factory=list)


class ResourceProvider(ArmBaseModel):
    namespace: str
    resource_types: list[ProviderResourceType] = Field(
        default_factory=list, alias="resourceTypes"
    )


class VmSize(ArmBaseModel):
    name: str
    number_of_cores: int | None = Field(default=None, alias="numberOfCores")
    memory_in_mb: int | None = Field(default=None, alias="memoryInMB")
    os_disk_size_in_mb: int | None = Field(default=None, alias="osDiskSizeInMB")
    resource_disk_size_in_mb: int | None = Field(default=None, alias="resourceDiskSizeInMB")
    max_data_disk_count: int | None = Field(default=None, alias="maxDataDiskCount")


class GenericResource(ArmBaseModel):
    id: str
    name: str
    type: str | None = None
    location: str | None = None


class HardwareProfile(ArmBaseModel):
    vm_size: str | None = Field(default=None, alias="vmSize")


class OsDisk(ArmBaseModel):
    os_type: str | None = Field(default=None, alias="osType")


class StorageProfile(ArmBaseModel):
    os_disk: OsDisk | None = Field(default=None, alias="osDisk")


class NetworkProfile(ArmBaseModel):
    network_interfaces: list[ResourceId] = Field(
        default_factory=list, alias="networkInterfaces"
    )


class InstanceViewStatus(ArmBaseModel):
    code: str
    display_status: str | None = Field(default=None, alias="displayStatus")


class InstanceView(ArmBaseModel):
    statuses: list[InstanceViewStatus] = Field(default_factory=list)


class VirtualMachineProperties(ArmBaseModel):
    vm_id: str | None = Field(default=None, alias="vmId")
    hardware_profile: HardwareProfile | None = Field(default=None, alias="hardwareProfile")
    storage_profile: StorageProfile | None = Field(default=None, alias="storageProfile")
    network_profile: NetworkProfile | None = Field(default=None, alias="networkProfile")
    instance_view: InstanceView | None = Field(default=None, alias="instanceView")


class VirtualMachine(ArmBaseModel):
    id: str
    name: str
    location: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)
    properties: VirtualMachineProperties = Field(default_factory=VirtualMachineProperties)

    @property
    def power_state(self) -> str | None:
        view = self.properties.instance_view
        if view is None:
            return None
        for status in view.statuses:
            if status.code.startswith("PowerState/"):
                return status.code.split("/", 1)[1]
        return None

    @property
    def network_interface_ids(self) -> list[str]:
        profile = self.properties.network_profile
        return [nic.id for nic in profile.network_interfaces] if profile else []


class Sku(ArmBaseModel):
    name: str | None = None


class DiskProperties(ArmBaseModel):
    disk_size_gb: int | None = Field(default=None, alias="diskSizeGB")
    disk_state: str | None = Field(default=None, alias="diskState")
    time_created: datetime | None = Field(default=None, alias="timeCreated")


class Disk(ArmBaseModel):
    id: str
    name: str
    location: str | None = None
    managed_by: str | None = Field(default=None, alias="managedBy")
    sku: Sku | None = None
    properties: DiskProperties = Field(default_factory=DiskProperties)


# Network ------------------------------------------------------------------------


class AddressSpace(ArmBaseModel):
    address_prefixes: list[str] = Field(default_factory=list, alias="addressPrefixes")


class SubnetProperties(ArmBaseModel):
    address_prefix: str | None = Field(default=None, alias="addressPrefix")
    provisioning_state: str | None = Field(default=None, alias="provisioningState")


class Subnet(ArmBaseModel):
    id: str
    name: str
    properties: SubnetProperties = Field(default_factory=SubnetProperties)


class VirtualNetworkProperties(ArmBaseModel):
    address_space: AddressSpace | None = Field(default=None, alias="addressSpace")
    subnets: list[Subnet] = Field(default_factory=list)
    provisioning_state: str | None = Field(default=None, alias="provisioningState")


class VirtualNetwork(ArmBaseModel):
    id: str
    name: str
    location: str | None = None
    properties: VirtualNetworkProperties = Field(default_factory=VirtualNetworkProperties)


class IpConfigurationProperties(ArmBaseModel):
    private_ip_address: str | None = Field(default=None, alias="privateIPAddress")
    subnet: ResourceId | None = None
    public_ip_address: ResourceId | None = Field(default=None, alias="publicIPAddress")


class IpConfiguration(ArmBaseModel):
    id: str
    name: str | None = None
    properties: IpConfigurationProperties = Field(default_factory=IpConfigurationProperties)


class NetworkInterfaceProperties(ArmBaseModel):
    mac_address: str | None = Field(default=None, alias="macAddress")
    virtual_machine: ResourceId | None = Field(default=None, alias="virtualMachine")
    ip_configurations: list[IpConfiguration] = Field(
        default_factory=list, alias="ipConfigurations"
    )
    network_security_group: ResourceId | None = Field(
        default=None, alias="networkSecurityGroup"
    )


class NetworkInterface(ArmBaseModel):
    id: str
    name: str
    location: str | None = None
    properties: NetworkInterfaceProperties = Field(default_factory=NetworkInterfaceProperties)


class SecurityRule(ArmBaseModel):
    name: str
    properties: dict[str, object] = Field(default_factory=dict)


class NetworkSecurityGroupProperties(ArmBaseModel):
    security_rules: list[SecurityRule] = Field(default_factory=list, alias="securityRules")
    network_interfaces: list[ResourceId] = Field(
        default_factory=list, alias="networkInterfaces"
    )
    subnets: list[ResourceId] = Field(default_factory=list)


class NetworkSecurityGroup(ArmBaseModel):
    id: str
    name: str
    location: str | None = None
    properties: NetworkSecurityGroupProperties = Field(
        default_factory=NetworkSecurityGroupProperties
    )


class PublicIpAddressProperties(ArmBaseModel):
    ip_address: str | None = Field(default=None, alias="ipAddress")
    ip_configuration: ResourceId | None = Field(default=None, alias="ipConfiguration")


class PublicIpAddress(ArmBaseModel):
    id: str
    name: str
    location: str | None = None
    properties: PublicIpAddressProperties = Field(default_factory=PublicIpAddressProperties)


class VmBundle(ArmBaseModel):
    """A virtual machine together with the network interfaces it references."""

    vm: VirtualMachine
    network_interfaces: list[NetworkInterface] = Field(default_factory=list)
