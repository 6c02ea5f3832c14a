"""documents.py
Conversion of store records into Elasticsearch documents and bulk bodies.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from docmirror.common.entities import IndexTarget
from docmirror.common.store import ID_FIELD, Record, record_id


def select_fields(
    default_fields: Sequence[str], override: Sequence[str] | None = None
) -> list[str]:
    """Pick the field selection for a sync or index call.

    A non-empty *override* wins over the schema's indexed fields.  An empty
    result means the full record.
    """
    if override:
        return list(override)
    return list(default_fields)


def build_document(record: Record, fields: Sequence[str] | None = None) -> dict[str, Any]:
    """Return the indexable body of *record*.

    The store identifier is dropped since it becomes the document ``_id``.
    """
    if fields:
        wanted = set(fields)
        return {k: v for k, v in record.items() if k in wanted and k != ID_FIELD}
    return {k: v for k, v in record.items() if k != ID_FIELD}


def bulk_body(
    records: Iterable[Record], target: IndexTarget, fields: Sequence[str] | None = None
) -> list[dict[str, Any]]:
    """Build the alternating action/document body of one bulk request."""
    body: list[dict[str, Any]] = []
    for record in records:
        body.append(
            {
                "index": {
                    "_index": target.index_name,
                    "_type": target.type_name,
                    "_id": record_id(record),
                }
            }
        )
        body.append(build_document(record, fields))
    return body
