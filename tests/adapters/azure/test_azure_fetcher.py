from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from topocollect.adapters.azure import AzureAPIError, ComputeFetchers, NetworkFetchers
from topocollect.adapters.azure.fetcher import AzureSubscriptionScopes, _AzureFetcherFamily
from topocollect.adapters.azure.schema import Disk, VmBundle
from topocollect.domain.model import Scope

if TYPE_CHECKING:
    from topocollect.adapters.azure import AzureClient

    from tests.support.http import FakeArm

SUB = "/subscriptions/sub-1"
VM_ID = f"{SUB}/resourceGroups/RG-Web/providers/Microsoft.Compute/virtualMachines/web-1"
NIC_ID = f"{SUB}/resourceGroups/RG-Web/providers/Microsoft.Network/networkInterfaces/web-1-nic"


def test_scopes_follow_next_link_pages(azure_client: AzureClient, fake_arm: FakeArm) -> None:
    fake_arm.add(
        "/subscriptions",
        {
            "value": [{"subscriptionId": "sub-1", "displayName": "Dev"}],
            "nextLink": "https://management.azure.com/subscriptions/page-2?api-version=x",
        },
    )
    fake_arm.add("/subscriptions/page-2", {"value": [{"subscriptionId": "sub-2"}]})

    scopes = AzureSubscriptionScopes(azure_client).scopes()

    assert [scope.subscription_id for scope in scopes] == ["sub-1", "sub-2"]
    assert fake_arm.token_requests == 1
    first, second = fake_arm.gets()
    assert first.headers["User-Agent"] == "topocollect"
    assert first.url.params["api-version"] == "2020-01-01"
    assert second.url.params["api-version"] == "x"


def test_vms_are_expanded_with_instance_view_and_network_interfaces(
    azure_client: AzureClient, fake_arm: FakeArm
) -> None:
    fake_arm.add(
        f"{SUB}/resources",
        {"value": [{"id": VM_ID, "name": "web-1", "type": "Microsoft.Compute/virtualMachines"}]},
    )
    fake_arm.add(
        VM_ID,
        {
            "id": VM_ID,
            "name": "web-1",
            "location": "westeurope",
            "properties": {
                "vmId": "8c2f",
                "hardwareProfile": {"vmSize": "Standard_B1s"},
                "networkProfile": {"networkInterfaces": [{"id": NIC_ID}]},
                "instanceView": {"statuses": [{"code": "PowerState/running"}]},
            },
        },
    )
    fake_arm.add(NIC_ID, {"id": NIC_ID, "name": "web-1-nic", "properties": {"macAddress": "AA"}})

    fetch = ComputeFetchers(azure_client).fetcher_for("vms")
    assert fetch is not None
    bundles = list(fetch(Scope.of(subscription_id="sub-1")))

    assert len(bundles) == 1
    bundle = bundles[0]
    assert isinstance(bundle, VmBundle)
    assert bundle.vm.power_state == "running"
    assert [nic.properties.mac_address for nic in bundle.network_interfaces] == ["AA"]
    resources_request = fake_arm.gets()[0]
    assert resources_request.url.params["$filter"] == (
        "resourceType eq 'Microsoft.Compute/virtualMachines'"
    )
    vm_request = next(request for request in fake_arm.requests if request.url.path == VM_ID)
    assert vm_request.url.params["$expand"] == "instanceView"


def test_flavors_use_first_compute_region(azure_client: AzureClient, fake_arm: FakeArm) -> None:
    fake_arm.add(
        f"{SUB}/providers/Microsoft.Compute",
        {
            "namespace": "Microsoft.Compute",
            "resourceTypes": [
                {"resourceType": "availabilitySets", "locations": ["West Europe", "East US"]}
            ],
        },
    )
    fake_arm.add(
        f"{SUB}/providers/Microsoft.Compute/locations/westeurope/vmSizes",
        {"value": [{"name": "Standard_B1s", "numberOfCores": 1, "memoryInMB": 1024}]},
    )

    fetch = ComputeFetchers(azure_client).fetcher_for("flavors")
    assert fetch is not None
    flavors = list(fetch(Scope.of(subscription_id="sub-1")))

    assert [flavor.name for flavor in flavors] == ["Standard_B1s"]  # type: ignore[attr-defined]


def test_volumes_are_lazy_and_validated(azure_client: AzureClient, fake_arm: FakeArm) -> None:
    fake_arm.add(
        f"{SUB}/providers/Microsoft.Compute/disks",
        {"value": [{"id": f"{SUB}/disks/d1", "name": "d1", "properties": {"diskSizeGB": 8}}]},
    )
    fetch = ComputeFetchers(azure_client).fetcher_for("volumes")
    assert fetch is not None

    iterator = iter(fetch(Scope.of(subscription_id="sub-1")))
    assert fake_arm.requests == []
    disk = next(iterator)

    assert isinstance(disk, Disk)
    assert disk.properties.disk_size_gb == 8


def test_network_family_serves_network_types(azure_client: AzureClient) -> None:
    family = NetworkFetchers(azure_client)

    assert family.fetcher_for("floating_ips") is not None
    assert family.fetcher_for("vms") is None


def test_arm_errors_raise_transport_errors(azure_client: AzureClient, fake_arm: FakeArm) -> None:
    fake_arm.add(
        f"{SUB}/providers/Microsoft.Network/virtualNetworks",
        {"error": {"code": "AuthorizationFailed", "message": "denied"}},
        status=403,
    )
    fetch = NetworkFetchers(azure_client).fetcher_for("networks")
    assert fetch is not None

    with pytest.raises(AzureAPIError) as excinfo:
        list(fetch(Scope.of(subscription_id="sub-1")))

    assert excinfo.value.status_code == 403
    assert excinfo.value.code == "AuthorizationFailed"


def test_token_is_reused_across_sessions(azure_client: AzureClient, fake_arm: FakeArm) -> None:
    fake_arm.add("/subscriptions", {"value": []})
    scopes = AzureSubscriptionScopes(azure_client)

    scopes.scopes()
    scopes.scopes()

    assert fake_arm.token_requests == 1


def test_fetcher_family_base_cannot_be_instantiated(azure_client: AzureClient) -> None:
    with pytest.raises(TypeError):
        _AzureFetcherFamily(azure_client)  # type: ignore[abstract]
