"""SQLAlchemy table metadata for the local inventory store."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

refresh_state_table = Table(
    "refresh_state",
    metadata,
    Column("uuid", UUIDColumnType, primary_key=True),
    Column("status", String(32), nullable=False),
    Column("total_parts", Integer, nullable=True),
    Column("error_message", Text, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Column("swept_at", UTCDateTime, nullable=True),
)

refresh_state_part_table = Table(
    "refresh_state_part",
    metadata,
    Column("uuid", UUIDColumnType, primary_key=True),
    Column(
        "refresh_state_uuid",
        UUIDColumnType,
        ForeignKey("refresh_state.uuid", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("record_count", Integer, nullable=False),
    Column("created_at", UTCDateTime, nullable=False),
    Index(None, "refresh_state_uuid"),
)

inventory_record_table = Table(
    "inventory_record",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("collection", String(128), nullable=False),
    Column("source_ref", String(1024), nullable=False),
    Column("payload", JSON, nullable=False),
    Column("refresh_state_uuid", UUIDColumnType, nullable=False),
    Column("refresh_state_part_uuid", UUIDColumnType, nullable=False),
    Column("last_seen_at", UTCDateTime, nullable=False),
    Column("archived_at", UTCDateTime, nullable=True),
    UniqueConstraint("collection", "source_ref"),
    Index(None, "collection", "refresh_state_uuid"),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine, checkfirst=True)
