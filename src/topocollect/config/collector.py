"""Refresh loop defaults for the collector."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .env import optional_float, optional_int
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_LIMIT = 1_000
DEFAULT_POLL_TIME = 30.0


@dataclass(frozen=True, slots=True)
class CollectorConfig:
    default_limit: int = DEFAULT_LIMIT
    poll_time: float = DEFAULT_POLL_TIME
    continuous: bool = True
    limits: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.default_limit <= 0:
            raise ConfigurationError("Default batch limit must be positive")
        if self.poll_time < 0:
            raise ConfigurationError("Poll time must be non-negative")
        invalid = sorted(tag for tag, limit in self.limits.items() if limit <= 0)
        if invalid:
            raise ConfigurationError(f"Batch limits must be positive: {', '.join(invalid)}")

    def limit_for(self, tag: str) -> int:
        return self.limits.get(tag, self.default_limit)


def get_collector_config(
    *,
    continuous: bool = True,
    limits: Mapping[str, int] | None = None,
) -> CollectorConfig:
    return CollectorConfig(
        default_limit=optional_int("COLLECTOR_DEFAULT_LIMIT", DEFAULT_LIMIT),
        poll_time=optional_float("COLLECTOR_POLL_TIME", DEFAULT_POLL_TIME),
        continuous=continuous,
        limits=dict(limits or {}),
    )
