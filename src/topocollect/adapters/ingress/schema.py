"""Pydantic models for the inventory ingress API payloads."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from topocollect.domain.model import LazyReference

if TYPE_CHECKING:
    from topocollect.domain.model import InventoryCollection, InventoryRecord


class IngressBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class SchemaRef(IngressBaseModel):
    name: str


class ReferenceKey(IngressBaseModel):
    source_ref: str


class LazyObject(IngressBaseModel):
    inventory_collection_name: str
    reference: ReferenceKey
    ref: Literal["manager_ref"] = "manager_ref"


class IngressCollection(IngressBaseModel):
    name: str
    data: list[dict[str, object]] = Field(default_factory=list)


class IngressInventory(IngressBaseModel):
    name: str
    schema_: SchemaRef = Field(alias="schema")
    source: str
    collections: list[IngressCollection] | None = None
    refresh_state_uuid: UUID
    refresh_state_part_uuid: UUID | None = None
    total_parts: int | None = None
    sweep_scope: list[str] | None = None

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True).encode()


def _serialize_value(value: object) -> object:
    if isinstance(value, LazyReference):
        return LazyObject(
            inventory_collection_name=value.collection,
            reference=ReferenceKey(source_ref=value.source_ref),
        ).model_dump()
    if isinstance(value, dict):
        return {key: _serialize_value(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_serialize_value(item) for item in value]
    return value


def serialize_record(record: InventoryRecord) -> dict[str, object]:
    data = {key: _serialize_value(value) for key, value in record.attributes.items()}
    data["source_ref"] = record.source_ref
    return data


def serialize_collection(collection: InventoryCollection) -> IngressCollection:
    return IngressCollection(
        name=collection.name,
        data=[serialize_record(record) for record in collection.records],
    )
