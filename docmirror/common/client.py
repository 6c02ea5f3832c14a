"""Thin wrapper around the official Elasticsearch client.

Every component talks to the search engine through :class:`SearchBackend`, the
small set of primitives the mirroring needs:

* bulk writes, single-document index / delete,
* index existence check / creation and mapping updates,
* pass-through search.

:class:`ElasticsearchClient` implements it on top of ``elasticsearch`` 8.x and
:func:`connect` builds one, verifying connectivity first.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Protocol, Sequence

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ConnectionError as ESConnectionError

from docmirror.common.settings import settings

logger = logging.getLogger(__name__)


class ElasticsearchConnectionError(RuntimeError):
    """Raised when the client fails to connect to Elasticsearch."""


class SearchBackend(Protocol):
    """Search-engine primitives used by the mirroring components."""

    def bulk(self, body: list[dict[str, Any]]) -> Mapping[str, Any]: ...

    def index(
        self, index: str, type: str, id: str, body: Mapping[str, Any]
    ) -> Mapping[str, Any]: ...

    def delete(self, index: str, type: str, id: str) -> Mapping[str, Any]: ...

    def index_exists(self, index: str) -> bool: ...

    def create_index(self, index: str) -> Mapping[str, Any]: ...

    def put_mapping(
        self, index: str, type: str, body: Mapping[str, Any]
    ) -> Mapping[str, Any]: ...

    def search(
        self,
        index: str,
        body: Mapping[str, Any],
        from_: int | None = None,
        size: int | None = None,
        sort: Any = None,
    ) -> Mapping[str, Any]: ...


class ElasticsearchClient:
    """:class:`SearchBackend` backed by :class:`elasticsearch.Elasticsearch`.

    Elasticsearch 8 dropped mapping types.  Type names are accepted so callers
    can keep addressing ``{index, type}`` targets, but they are not sent.
    """

    def __init__(self, client: Elasticsearch) -> None:
        self._client = client

    @property
    def raw(self) -> Elasticsearch:
        """The underlying Elasticsearch client."""
        return self._client

    def bulk(self, body: list[dict[str, Any]]) -> Mapping[str, Any]:
        operations = list(body)
        # action headers sit at even positions, documents at odd ones
        for pos in range(0, len(operations), 2):
            operations[pos] = {
                action: {k: v for k, v in meta.items() if k != "_type"}
                for action, meta in operations[pos].items()
            }
        return self._client.bulk(operations=operations).body

    def index(
        self, index: str, type: str, id: str, body: Mapping[str, Any]
    ) -> Mapping[str, Any]:
        return self._client.index(index=index, id=id, document=dict(body)).body

    def delete(self, index: str, type: str, id: str) -> Mapping[str, Any]:
        return self._client.delete(index=index, id=id).body

    def index_exists(self, index: str) -> bool:
        return bool(self._client.indices.exists(index=index))

    def create_index(self, index: str) -> Mapping[str, Any]:
        return self._client.indices.create(index=index).body

    def put_mapping(
        self, index: str, type: str, body: Mapping[str, Any]
    ) -> Mapping[str, Any]:
        return self._client.indices.put_mapping(
            index=index, properties=body["properties"]
        ).body

    def search(
        self,
        index: str,
        body: Mapping[str, Any],
        from_: int | None = None,
        size: int | None = None,
        sort: Any = None,
    ) -> Mapping[str, Any]:
        # The 8.x client refuses body fields passed both ways, so explicit
        # paging and sort replace the matching body keys.
        request = dict(body)
        if from_ is not None:
            request["from"] = from_
        if size is not None:
            request["size"] = size
        if sort is not None:
            request["sort"] = sort
        return self._client.search(index=index, body=request).body


def _with_scheme(host: str) -> str:
    return host if "://" in host else f"http://{host}"


def connect(
    hosts: Sequence[str] | str | None = None,
    request_timeout: int | None = None,
    retries: int | None = None,
    retry_delay: float | None = None,
) -> ElasticsearchClient:
    """Instantiate a client and verify connectivity.

    Args:
        hosts: Single host or list of hosts where Elasticsearch is available.
            Defaults to ``settings.es_host``.
        request_timeout: Per-request timeout in seconds.
        retries: Number of pings attempted before giving up.
        retry_delay: Seconds between two failed pings.

    Raises:
        ElasticsearchConnectionError: If the cluster is unreachable.
    """
    if not hosts:
        hosts = settings.es_host
    if isinstance(hosts, str):
        hosts = [hosts]
    hosts = [_with_scheme(h) for h in hosts]
    retries = retries if retries is not None else settings.connect_retries
    retry_delay = retry_delay if retry_delay is not None else settings.connect_retry_delay

    client = Elasticsearch(
        hosts, request_timeout=request_timeout or settings.request_timeout
    )

    # Elasticsearch container may still be starting, retry a few times
    for attempt in range(retries):
        try:
            if client.ping():
                break
        except ESConnectionError:
            pass

        if attempt == retries - 1:
            raise ElasticsearchConnectionError(
                f"Unable to connect to Elasticsearch at {hosts}"
            )

        logger.info(
            "ES ping failed (attempt %d/%d); retrying in %ss…",
            attempt + 1,
            retries,
            retry_delay,
        )
        time.sleep(retry_delay)

    return ElasticsearchClient(client)
