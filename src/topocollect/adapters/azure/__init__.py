"""Public interface for the Azure adapter."""

from __future__ import annotations

from .client import AzureAPIError, AzureClient, AzureSession, AzureTokenProvider
from .fetcher import AzureSubscriptionScopes, ComputeFetchers, NetworkFetchers
from .translator import AzureNormalizer

__all__ = [
    "AzureAPIError",
    "AzureClient",
    "AzureNormalizer",
    "AzureSession",
    "AzureSubscriptionScopes",
    "AzureTokenProvider",
    "ComputeFetchers",
    "NetworkFetchers",
]
