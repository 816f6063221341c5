"""Inventory sink persisting refresh-cycle parts into a local database."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, func, select, update
from sqlalchemy.orm import Session, sessionmaker

from topocollect.domain.model import LazyReference

from .mappings import (
    create_all_tables,
    inventory_record_table,
    refresh_state_part_table,
    refresh_state_table,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from uuid import UUID

    from sqlalchemy.engine import Engine

    from topocollect.domain.model import InventoryCollection, InventoryRecord

log = getLogger(__name__)


class RefreshStatus(StrEnum):
    COLLECTING = "collecting"
    SWEPT = "swept"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _json_safe(value: object) -> object:
    if isinstance(value, LazyReference):
        return {"collection": value.collection, "source_ref": value.source_ref}
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_json_safe(item) for item in value]
    return value


def record_payload(record: InventoryRecord) -> dict[str, object]:
    return {key: _json_safe(value) for key, value in record.attributes.items()}


class SqlAlchemyInventorySink:
    """Keeps the current inventory in a relational database.

    Records are upserted by ``(collection, source_ref)`` and stamped with the refresh
    cycle that last saw them. A sweep archives the records of the swept collections
    that carry an older stamp, and is refused when the number of parts received for
    the cycle does not match the announced total.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.engine = engine
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine, expire_on_commit=False
        )
        self._clock = clock
        create_all_tables(engine)

    @classmethod
    def from_uri(cls, database_uri: str) -> SqlAlchemyInventorySink:
        return cls(create_engine(database_uri, future=True))

    def upload(
        self,
        collections: Sequence[InventoryCollection],
        refresh_state_uuid: UUID,
        refresh_state_part_uuid: UUID,
    ) -> int:
        now = self._clock()
        with self._session_factory.begin() as session:
            self._ensure_refresh_state(session, refresh_state_uuid, now)
            record_count = 0
            for collection in collections:
                for record in collection.records:
                    self._upsert(
                        session,
                        collection.name,
                        record,
                        refresh_state_uuid,
                        refresh_state_part_uuid,
                        now,
                    )
                    record_count += 1
            self._record_part(
                session, refresh_state_uuid, refresh_state_part_uuid, record_count, now
            )
        return 1

    def sweep(
        self,
        refresh_state_uuid: UUID,
        total_parts: int,
        sweep_scope: Sequence[str],
    ) -> None:
        now = self._clock()
        with self._session_factory.begin() as session:
            received = session.execute(
                select(func.count())
                .select_from(refresh_state_part_table)
                .where(refresh_state_part_table.c.refresh_state_uuid == refresh_state_uuid)
            ).scalar_one()
            if received != total_parts:
                message = f"expected {total_parts} part(s), received {received}"
                log.warning(
                    "Refusing to sweep refresh_state_uuid=%s: %s", refresh_state_uuid, message
                )
                self._ensure_refresh_state(session, refresh_state_uuid, now)
                session.execute(
                    update(refresh_state_table)
                    .where(refresh_state_table.c.uuid == refresh_state_uuid)
                    .values(status=RefreshStatus.ERROR.value, error_message=message)
                )
                return

            result = session.execute(
                update(inventory_record_table)
                .where(inventory_record_table.c.collection.in_(list(sweep_scope)))
                .where(inventory_record_table.c.refresh_state_uuid != refresh_state_uuid)
                .where(inventory_record_table.c.archived_at.is_(None))
                .values(archived_at=now)
            )
            session.execute(
                update(refresh_state_table)
                .where(refresh_state_table.c.uuid == refresh_state_uuid)
                .values(status=RefreshStatus.SWEPT.value, total_parts=total_parts, swept_at=now)
            )
        log.info(
            "Archived %d record(s) in %s for refresh_state_uuid=%s",
            result.rowcount,
            list(sweep_scope),
            refresh_state_uuid,
        )

    def active_source_refs(self, collection: str) -> set[str]:
        with self._session_factory() as session:
            rows = session.execute(
                select(inventory_record_table.c.source_ref)
                .where(inventory_record_table.c.collection == collection)
                .where(inventory_record_table.c.archived_at.is_(None))
            )
            return {row.source_ref for row in rows}

    def refresh_status(self, refresh_state_uuid: UUID) -> RefreshStatus | None:
        with self._session_factory() as session:
            status = session.execute(
                select(refresh_state_table.c.status).where(
                    refresh_state_table.c.uuid == refresh_state_uuid
                )
            ).scalar_one_or_none()
        return RefreshStatus(status) if status is not None else None

    def _ensure_refresh_state(
        self, session: Session, refresh_state_uuid: UUID, now: datetime
    ) -> None:
        exists = session.execute(
            select(refresh_state_table.c.uuid).where(
                refresh_state_table.c.uuid == refresh_state_uuid
            )
        ).scalar_one_or_none()
        if exists is None:
            session.execute(
                refresh_state_table.insert().values(
                    uuid=refresh_state_uuid,
                    status=RefreshStatus.COLLECTING.value,
                    created_at=now,
                )
            )

    def _record_part(
        self,
        session: Session,
        refresh_state_uuid: UUID,
        refresh_state_part_uuid: UUID,
        record_count: int,
        now: datetime,
    ) -> None:
        exists = session.execute(
            select(refresh_state_part_table.c.uuid).where(
                refresh_state_part_table.c.uuid == refresh_state_part_uuid
            )
        ).scalar_one_or_none()
        if exists is not None:
            log.debug("Part %s already recorded, keeping the first copy", refresh_state_part_uuid)
            return
        session.execute(
            refresh_state_part_table.insert().values(
                uuid=refresh_state_part_uuid,
                refresh_state_uuid=refresh_state_uuid,
                record_count=record_count,
                created_at=now,
            )
        )

    def _upsert(
        self,
        session: Session,
        collection: str,
        record: InventoryRecord,
        refresh_state_uuid: UUID,
        refresh_state_part_uuid: UUID,
        now: datetime,
    ) -> None:
        values = {
            "payload": record_payload(record),
            "refresh_state_uuid": refresh_state_uuid,
            "refresh_state_part_uuid": refresh_state_part_uuid,
            "last_seen_at": now,
            "archived_at": None,
        }
        existing_id = session.execute(
            select(inventory_record_table.c.id)
            .where(inventory_record_table.c.collection == collection)
            .where(inventory_record_table.c.source_ref == record.source_ref)
        ).scalar_one_or_none()
        if existing_id is None:
            session.execute(
                inventory_record_table.insert().values(
                    collection=collection, source_ref=record.source_ref, **values
                )
            )
        else:
            session.execute(
                update(inventory_record_table)
                .where(inventory_record_table.c.id == existing_id)
                .values(**values)
            )
