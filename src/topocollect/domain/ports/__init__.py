"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import FetcherFamily, RawFetcher, ScopeSource
from .inventory import InventorySink
from .metrics import MetricsSink
from .normalizing import Normalizer

__all__ = [
    "FetcherFamily",
    "InventorySink",
    "MetricsSink",
    "Normalizer",
    "RawFetcher",
    "ScopeSource",
]
