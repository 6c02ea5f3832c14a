"""store.py
Interface the document store driver has to provide.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

Record = Mapping[str, Any]

ID_FIELD = "_id"


class RecordStore(Protocol):
    """Paginated read access to one collection of the document store."""

    def count(self, query: Mapping[str, Any]) -> int: ...

    def find(
        self,
        query: Mapping[str, Any],
        fields: Sequence[str] | None,
        skip: int,
        limit: int,
    ) -> list[Record]:
        """Return at most *limit* records after *skip*, projected to *fields*.

        ``None`` (or an empty sequence) for *fields* means the full record.
        """
        ...


def record_id(record: Record) -> str | None:
    """Return the record's identifier as a string, or None when missing."""
    value = record.get(ID_FIELD)
    if value is None:
        return None
    return str(value)
