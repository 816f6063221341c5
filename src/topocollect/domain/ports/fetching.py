"""Ports for enumerating scopes and fetching raw provider records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from topocollect.domain.model import Scope


@runtime_checkable
class ScopeSource(Protocol):
    """Enumerates the independent scopes of one pass, freshly on every call."""

    def scopes(self) -> Iterable[Scope]: ...


@runtime_checkable
class RawFetcher(Protocol):
    """Lazily yields the raw records of one entity type within a scope."""

    def __call__(self, scope: Scope) -> Iterable[object]: ...


@runtime_checkable
class FetcherFamily(Protocol):
    """The fetchers served by one connection family (compute, network, ...)."""

    def fetcher_for(self, tag: str) -> RawFetcher | None: ...


__all__ = ["FetcherFamily", "RawFetcher", "ScopeSource"]
