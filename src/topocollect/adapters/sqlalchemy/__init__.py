"""SQLAlchemy adapter package: a local inventory store."""

from __future__ import annotations

from .mappings import create_all_tables, metadata
from .sink import RefreshStatus, SqlAlchemyInventorySink

__all__ = [
    "RefreshStatus",
    "SqlAlchemyInventorySink",
    "create_all_tables",
    "metadata",
]
