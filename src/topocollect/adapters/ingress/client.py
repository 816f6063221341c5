"""Inventory sink posting refresh-cycle parts to the ingress API."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

import httpx

from topocollect.adapters.http_resilience import ResilientClient
from topocollect.domain.errors import TransportError

from .schema import IngressCollection, IngressInventory, SchemaRef, serialize_collection

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from topocollect.config.http_resilience import ResilienceConfig
    from topocollect.config.ingress import IngressConfig
    from topocollect.domain.model import InventoryCollection

log = getLogger(__name__)

INVENTORY_PATH = "/inventory"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class IngressAPIError(TransportError):
    """Raised when the ingress API rejects or fails to receive a payload."""


@dataclass(slots=True)
class IngressApiSink:
    """Delivers inventory parts and sweep requests to the ingress API.

    Payloads larger than ``config.max_bytes`` are split into several parts, each
    with its own part uuid; :meth:`upload` reports how many were posted so the
    sweep request can announce the correct total.
    """

    config: IngressConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    id_factory: Callable[[], UUID] = field(default=uuid4)

    def upload(
        self,
        collections: Sequence[InventoryCollection],
        refresh_state_uuid: UUID,
        refresh_state_part_uuid: UUID,
    ) -> int:
        if not collections:
            return 0
        payloads = list(self._split(collections, refresh_state_uuid, refresh_state_part_uuid))
        asyncio.run(self._post_all(payloads))
        return len(payloads)

    def sweep(
        self,
        refresh_state_uuid: UUID,
        total_parts: int,
        sweep_scope: Sequence[str],
    ) -> None:
        if not sweep_scope:
            return
        inventory = self._inventory(
            refresh_state_uuid=refresh_state_uuid,
            total_parts=total_parts,
            sweep_scope=list(sweep_scope),
        )
        asyncio.run(self._post_all([inventory]))

    def _inventory(self, **values: object) -> IngressInventory:
        return IngressInventory.model_validate(
            {
                "name": self.config.inventory_name,
                "schema": SchemaRef(name=self.config.schema_name),
                "source": self.config.source_uid,
                **values,
            }
        )

    def _split(
        self,
        collections: Sequence[InventoryCollection],
        refresh_state_uuid: UUID,
        refresh_state_part_uuid: UUID,
    ) -> Iterator[IngressInventory]:
        serialized = [serialize_collection(collection) for collection in collections]
        whole = self._inventory(
            collections=serialized,
            refresh_state_uuid=refresh_state_uuid,
            refresh_state_part_uuid=refresh_state_part_uuid,
        )
        if len(whole.to_json()) <= self.config.max_bytes:
            yield whole
            return

        envelope = len(
            self._inventory(
                collections=[],
                refresh_state_uuid=refresh_state_uuid,
                refresh_state_part_uuid=refresh_state_part_uuid,
            ).to_json()
        )
        part_uuid = refresh_state_part_uuid
        chunk: dict[str, IngressCollection] = {}
        size = envelope
        for collection in serialized:
            for record in collection.data:
                record_size = len(json.dumps(record, default=str)) + len(collection.name) + 32
                if chunk and size + record_size > self.config.max_bytes:
                    yield self._chunk(chunk, refresh_state_uuid, part_uuid)
                    part_uuid = self.id_factory()
                    chunk = {}
                    size = envelope
                if record_size + envelope > self.config.max_bytes:
                    log.warning(
                        "Record %s of %s exceeds max_bytes=%d on its own",
                        record.get("source_ref"),
                        collection.name,
                        self.config.max_bytes,
                    )
                chunk.setdefault(collection.name, IngressCollection(name=collection.name))
                chunk[collection.name].data.append(record)
                size += record_size
        if chunk:
            yield self._chunk(chunk, refresh_state_uuid, part_uuid)

    def _chunk(
        self,
        chunk: dict[str, IngressCollection],
        refresh_state_uuid: UUID,
        refresh_state_part_uuid: UUID,
    ) -> IngressInventory:
        return self._inventory(
            collections=list(chunk.values()),
            refresh_state_uuid=refresh_state_uuid,
            refresh_state_part_uuid=refresh_state_part_uuid,
        )

    async def _post_all(self, payloads: Sequence[IngressInventory]) -> None:
        async with self.client_factory(self.config.resilience) as client:
            for payload in payloads:
                await self._post(client, payload)

    async def _post(self, client: ResilientClient, payload: IngressInventory) -> None:
        url = f"{self.config.base_url}{INVENTORY_PATH}"
        try:
            response = await client.post(
                url,
                content=payload.to_json(),
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            log.error(
                "Ingress API rejected refresh_state_uuid=%s: HTTP %s %s",
                payload.refresh_state_uuid,
                exc.response.status_code,
                exc.response.text[:200],
            )
            raise IngressAPIError(
                f"Ingress API returned HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise IngressAPIError(f"Ingress API request failed: {exc}") from exc
