"""Azure Resource Manager configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from .env import require_env_vars
from .http_resilience import USER_AGENT, RateLimit, ResilienceConfig

AZURE_MANAGEMENT_URL: Final[str] = "https://management.azure.com"
AZURE_LOGIN_URL: Final[str] = "https://login.microsoftonline.com"
AZURE_TIMEOUT_SECONDS: Final[float] = 30.0

# ARM api-version per resource provider namespace
DEFAULT_API_VERSIONS: Final[dict[str, str]] = {
    "Microsoft.Resources": "2021-04-01",
    "Microsoft.Subscription": "2020-01-01",
    "Microsoft.Compute": "2023-03-01",
    "Microsoft.Compute/disks": "2023-04-02",
    "Microsoft.Network": "2023-05-01",
}


@dataclass(frozen=True)
class AzureConfig:
    """Holds service principal credentials and transport settings for ARM."""

    client_id: str
    client_secret: str = field(repr=False)
    tenant_id: str
    resilience: ResilienceConfig
    login_url: str = AZURE_LOGIN_URL
    api_versions: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_API_VERSIONS))

    def api_version(self, namespace: str) -> str:
        return self.api_versions[namespace]


def default_azure_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="azure",
        base_url=AZURE_MANAGEMENT_URL,
        timeout_seconds=AZURE_TIMEOUT_SECONDS,
        # ARM allows 12000 reads per hour per principal; stay well below it
        ratelimit=RateLimit(max_calls=3, per_seconds=1.0),
        default_headers={"User-Agent": USER_AGENT},
    )


def get_azure_config(*, resilience: ResilienceConfig | None = None) -> AzureConfig:
    values = require_env_vars(("AZURE_CLIENT_ID", "AZURE_CLIENT_SECRET", "AZURE_TENANT_ID"))
    return AzureConfig(
        client_id=values["AZURE_CLIENT_ID"],
        client_secret=values["AZURE_CLIENT_SECRET"],
        tenant_id=values["AZURE_TENANT_ID"],
        resilience=resilience or default_azure_resilience(),
    )
