from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from topocollect.adapters.azure import AzureClient

from tests.support.http import FakeArm, mock_client_factory

if TYPE_CHECKING:
    from topocollect.config.azure import AzureConfig


@pytest.fixture
def fake_arm() -> FakeArm:
    return FakeArm()


@pytest.fixture
def azure_client(azure_config: AzureConfig, fake_arm: FakeArm) -> AzureClient:
    return AzureClient(azure_config, client_factory=mock_client_factory(fake_arm))
