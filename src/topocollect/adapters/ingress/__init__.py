"""Public interface for the inventory ingress adapter."""

from __future__ import annotations

from .client import IngressAPIError, IngressApiSink
from .schema import IngressCollection, IngressInventory, LazyObject, serialize_record

__all__ = [
    "IngressAPIError",
    "IngressApiSink",
    "IngressCollection",
    "IngressInventory",
    "LazyObject",
    "serialize_record",
]
