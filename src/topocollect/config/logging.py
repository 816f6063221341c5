"""Root logger setup for the collector process."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger with full timestamps.

    Cycle, part and sweep messages carry their ``refresh_state_uuid``; the module
    name in the format tells collector, fetcher and sink lines apart. ``force``
    replaces handlers that are already installed.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
        force=force,
    )
