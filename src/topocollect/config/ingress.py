"""Inventory ingress API configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .env import optional_int, require_env_vars
from .errors import ConfigurationError
from .http_resilience import USER_AGENT, ResilienceConfig

DEFAULT_INVENTORY_NAME: Final[str] = "Azure"
DEFAULT_SCHEMA_NAME: Final[str] = "Default"
DEFAULT_MAX_BYTES: Final[int] = 1_000_000
INGRESS_TIMEOUT_SECONDS: Final[float] = 60.0


@dataclass(frozen=True)
class IngressConfig:
    """Where and how inventory parts are delivered to the ingress API."""

    base_url: str
    source_uid: str
    resilience: ResilienceConfig
    inventory_name: str = DEFAULT_INVENTORY_NAME
    schema_name: str = DEFAULT_SCHEMA_NAME
    max_bytes: int = DEFAULT_MAX_BYTES


def get_ingress_config(*, resilience: ResilienceConfig | None = None) -> IngressConfig:
    values = require_env_vars(("INGRESS_API_URL", "SOURCE_UID"))
    max_bytes = optional_int("INGRESS_MAX_BYTES", DEFAULT_MAX_BYTES)
    if max_bytes <= 0:
        raise ConfigurationError("INGRESS_MAX_BYTES must be positive")
    base_url = values["INGRESS_API_URL"].rstrip("/")
    return IngressConfig(
        base_url=base_url,
        source_uid=values["SOURCE_UID"],
        resilience=resilience
        or ResilienceConfig(
            name="ingress",
            base_url=base_url,
            timeout_seconds=INGRESS_TIMEOUT_SECONDS,
            default_headers={"User-Agent": USER_AGENT},
        ),
        inventory_name=os.getenv("INVENTORY_NAME") or DEFAULT_INVENTORY_NAME,
        schema_name=os.getenv("INVENTORY_SCHEMA") or DEFAULT_SCHEMA_NAME,
        max_bytes=max_bytes,
    )
