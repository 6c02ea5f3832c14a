from __future__ import annotations

from collections import defaultdict
from typing import Any, Mapping, Sequence

import pytest

from docmirror.common.entities import IndexTarget


class FakeSearchClient:
    """In-memory stand-in for the search backend that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.indices: set[str] = set()
        self.documents: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.mappings: dict[str, dict[str, Any]] = {}
        self.failures: dict[str, Exception] = {}
        self.bulk_errors_on: set[int] = set()
        self.search_response: dict[str, Any] = {"hits": {"total": 0, "hits": []}}

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if name in self.failures:
            raise self.failures[name]

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def bulk(self, body: list[dict[str, Any]]) -> Mapping[str, Any]:
        self._record("bulk", body=body)
        call_no = self.names().count("bulk")
        if call_no in self.bulk_errors_on:
            return {"errors": True, "items": [{"index": {"status": 400}}]}
        for header, doc in zip(body[::2], body[1::2]):
            meta = header["index"]
            self.documents[meta["_index"]][meta["_id"]] = doc
        return {"errors": False, "items": [{"index": {"status": 201}}] * (len(body) // 2)}

    def index(self, index: str, type: str, id: str, body: Mapping[str, Any]) -> Mapping[str, Any]:
        self._record("index", index=index, type=type, id=id, body=body)
        result = "updated" if id in self.documents[index] else "created"
        self.documents[index][id] = dict(body)
        return {"_index": index, "_id": id, "result": result}

    def delete(self, index: str, type: str, id: str) -> Mapping[str, Any]:
        self._record("delete", index=index, type=type, id=id)
        self.documents[index].pop(id, None)
        return {"_index": index, "_id": id, "result": "deleted"}

    def index_exists(self, index: str) -> bool:
        self._record("index_exists", index=index)
        return index in self.indices

    def create_index(self, index: str) -> Mapping[str, Any]:
        self._record("create_index", index=index)
        self.indices.add(index)
        return {"acknowledged": True, "index": index}

    def put_mapping(self, index: str, type: str, body: Mapping[str, Any]) -> Mapping[str, Any]:
        self._record("put_mapping", index=index, type=type, body=body)
        self.mappings[index] = dict(body)
        return {"acknowledged": True}

    def search(
        self,
        index: str,
        body: Mapping[str, Any],
        from_: int | None = None,
        size: int | None = None,
        sort: Any = None,
    ) -> Mapping[str, Any]:
        self._record("search", index=index, body=body, from_=from_, size=size, sort=sort)
        return self.search_response


class InMemoryStore:
    """Record store over a list of dicts, honoring skip/limit and projections."""

    def __init__(self, records: list[dict[str, Any]]) -> None:
        self.records = records
        self.find_calls: list[dict[str, Any]] = []
        self.fail_on_call: int | None = None

    def _matches(self, record: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
        return all(record.get(k) == v for k, v in query.items())

    def count(self, query: Mapping[str, Any]) -> int:
        return sum(1 for r in self.records if self._matches(r, query))

    def find(
        self,
        query: Mapping[str, Any],
        fields: Sequence[str] | None,
        skip: int,
        limit: int,
    ) -> list[dict[str, Any]]:
        self.find_calls.append({"query": query, "fields": fields, "skip": skip, "limit": limit})
        if self.fail_on_call == len(self.find_calls):
            raise RuntimeError("store unavailable")

        matching = [r for r in self.records if self._matches(r, query)]
        page = matching[skip : skip + limit]
        if not fields:
            return [dict(r) for r in page]
        keep = set(fields) | {"_id"}
        return [{k: v for k, v in r.items() if k in keep} for r in page]


@pytest.fixture
def search_client() -> FakeSearchClient:
    return FakeSearchClient()


@pytest.fixture
def make_store():
    def _make(count: int, **extra: Any) -> InMemoryStore:
        return InMemoryStore(
            [
                {"_id": f"id-{i:04d}", "title": f"Title {i}", "year": 2000 + i % 20, **extra}
                for i in range(count)
            ]
        )

    return _make


@pytest.fixture
def target() -> IndexTarget:
    return IndexTarget(index_name="books", type_name="book")
