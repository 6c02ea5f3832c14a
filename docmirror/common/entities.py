"""entities.py
Shared type definitions used by mapping compilation, synchronization and hooks.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Mapping, TypedDict

from pydantic import BaseModel, ConfigDict, Field


class CopyTo(BaseModel):
    """Copy-to declaration of a field.

    Fields
    ------
    target_field
        Name of the synthetic field that also receives this field's value.
    separate
        Prefix the target with the parent field name so sibling nested
        branches do not share one target.
    target_type
        Engine type of the synthesized target field (``text`` when unset).
    """

    model_config = ConfigDict(frozen=True)

    target_field: str
    separate: bool = False
    target_type: str | None = None


class FieldDescriptor(BaseModel):
    """One field of a record schema."""

    model_config = ConfigDict(frozen=True)

    name: str
    primitive_type: str | None = None
    es_type: str | None = None
    indexed: bool = False
    excluded: bool = False
    boost: float | None = None
    null_value: Any = None
    copy_to: CopyTo | None = None
    nested: SchemaDescriptor | None = None


class SchemaDescriptor(BaseModel):
    """Static description of a record schema, built once at startup."""

    model_config = ConfigDict(frozen=True)

    fields: tuple[FieldDescriptor, ...] = ()
    collection: str | None = None

    def indexed_fields(self) -> list[str]:
        """Return names of top-level fields opted into indexing."""
        return [f.name for f in self.fields if f.indexed and not f.excluded]


FieldDescriptor.model_rebuild()
SchemaDescriptor.model_rebuild()


class FieldMapping(TypedDict, total=False):
    """Single node of a compiled search-engine mapping."""

    type: str
    boost: float
    null_value: Any
    copy_to: str
    properties: dict[str, "FieldMapping"]


MappingDocument = dict[str, FieldMapping]


class IndexTarget(BaseModel):
    """Index and type name every component of one collection writes to."""

    model_config = ConfigDict(frozen=True)

    index_name: str
    type_name: str

    @classmethod
    def resolve(
        cls,
        collection: str | None,
        index_name: str | None = None,
        type_name: str | None = None,
    ) -> "IndexTarget":
        """Use explicit names, or derive them from the collection name."""
        if not index_name or not type_name:
            if not collection:
                raise ValueError(
                    "Collection name is required when index or type is not given"
                )
        return cls(
            index_name=index_name or f"{collection}s",
            type_name=type_name or collection,
        )


class SyncJob(BaseModel):
    """Parameters of one synchronization run."""

    model_config = ConfigDict(frozen=True)

    query: dict[str, Any] = Field(default_factory=dict)
    fields: tuple[str, ...] = ()
    batch_size: int
    total: int

    @property
    def batches(self) -> int:
        return math.ceil(self.total / self.batch_size)


class SyncReport(BaseModel):
    """Outcome of a completed synchronization."""

    total: int
    batches: int
    indexed: int


class ChangeKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class ChangeEvent(BaseModel):
    """A record lifecycle event as seen by the incremental indexer."""

    model_config = ConfigDict(frozen=True)

    record: Mapping[str, Any]
    kind: ChangeKind
