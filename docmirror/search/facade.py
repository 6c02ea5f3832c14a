"""facade.py
Pass-through search against the collection's index, plus forced single
document sync outside the hook path.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from docmirror.common.client import SearchBackend
from docmirror.common.entities import IndexTarget
from docmirror.common.store import Record, record_id
from docmirror.indexing.documents import build_document, select_fields

logger = logging.getLogger(__name__)


def _first_set(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


class SearchFacade:
    """Search and per-record index/unindex for one :class:`IndexTarget`."""

    def __init__(
        self,
        client: SearchBackend,
        target: IndexTarget,
        indexed_fields: Sequence[str] = (),
    ) -> None:
        self._client = client
        self._target = target
        self._indexed_fields = tuple(indexed_fields)

    def search(
        self,
        query: Mapping[str, Any] | None = None,
        skip: int | None = None,
        limit: int | None = None,
        sort: Any = None,
    ) -> Mapping[str, Any]:
        """Run *query* against the configured index.

        ``skip``/``limit``/``sort`` take precedence over ``from``/``size``/``sort``
        embedded in the query body; unset values are left to the engine.
        The engine response is returned untouched.
        """
        body = dict(query) if isinstance(query, Mapping) else {}
        return self._client.search(
            index=self._target.index_name,
            body=body,
            from_=_first_set(skip, body.get("from")),
            size=_first_set(limit, body.get("size")),
            sort=_first_set(sort, body.get("sort")),
        )

    def index_one(
        self,
        record: Record,
        index: str | None = None,
        type_name: str | None = None,
        fields: Sequence[str] | None = None,
    ) -> Mapping[str, Any]:
        """Index (or overwrite) the document of *record*."""
        doc_id = record_id(record)
        if doc_id is None:
            raise ValueError("Cannot index a record without an identifier")

        resp = self._client.index(
            index=index or self._target.index_name,
            type=type_name or self._target.type_name,
            id=doc_id,
            body=build_document(record, select_fields(self._indexed_fields, fields)),
        )
        logger.debug("Indexed record %s into '%s'.", doc_id, index or self._target.index_name)
        return resp

    def unindex_one(
        self,
        record: Record,
        index: str | None = None,
        type_name: str | None = None,
    ) -> Mapping[str, Any]:
        """Delete the document of *record*."""
        doc_id = record_id(record)
        if doc_id is None:
            raise ValueError("Cannot unindex a record without an identifier")

        return self._client.delete(
            index=index or self._target.index_name,
            type=type_name or self._target.type_name,
            id=doc_id,
        )
