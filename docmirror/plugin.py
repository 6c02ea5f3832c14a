"""plugin.py
Attach search mirroring to one collection of the document store.

:class:`SearchPlugin` resolves the index target once, compiles the schema and
wires every component around a single, injected search backend::

    plugin = SearchPlugin(schema, store, PluginOptions(index="books"))
    plugin.create_mappings()
    plugin.synchronize({"published": True})

    driver.on_save(plugin.on_save)
    driver.on_remove(plugin.on_remove)
    ...
    plugin.close()
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from docmirror.common.client import SearchBackend, connect
from docmirror.common.entities import IndexTarget, MappingDocument, SchemaDescriptor, SyncReport
from docmirror.common.settings import settings
from docmirror.common.store import Record, RecordStore
from docmirror.indexing.hooks import HookNotifier, IncrementalIndexer
from docmirror.indexing.index_manager import IndexManager, IndexStatus
from docmirror.indexing.mappings import compile_mapping
from docmirror.indexing.synchronizer import BatchSynchronizer
from docmirror.search.facade import SearchFacade

logger = logging.getLogger(__name__)


class PluginOptions(BaseModel):
    """Options given when attaching a collection.

    Fields
    ------
    index
        Index name; defaults to the collection name followed by ``s``.
    type
        Type name; defaults to the collection name.
    index_automatically
        Index on save / unindex on remove.  Defaults to the settings value.
    es_client
        Existing search backend to reuse instead of connecting.
    hosts / host
        Where to connect when no client is given.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    index: str | None = None
    type_name: str | None = Field(None, alias="type")
    index_automatically: bool | None = None
    es_client: Any = None
    hosts: list[str] | None = None
    host: str | None = None


class SearchPlugin:
    """All mirroring components of one collection, sharing one backend."""

    def __init__(
        self,
        schema: SchemaDescriptor,
        store: RecordStore,
        options: PluginOptions | Mapping[str, Any] | None = None,
        executor: Executor | None = None,
        inline_hooks: bool = False,
    ) -> None:
        """Attach mirroring to *schema*'s collection.

        Hooks run on *executor* when given.  Otherwise the plugin starts its own
        thread pool, released by :meth:`close`, unless *inline_hooks* asks for
        the engine calls to run before the hook returns.
        """
        if not isinstance(options, PluginOptions):
            options = PluginOptions.model_validate(dict(options or {}))

        self.schema = schema
        self.target = IndexTarget.resolve(
            schema.collection, options.index, options.type_name
        )
        self._client: SearchBackend = options.es_client or connect(
            options.hosts or options.host
        )

        indexed_fields = schema.indexed_fields()
        self.index_manager = IndexManager(self._client, self.target)
        self.synchronizer = BatchSynchronizer(
            store, self._client, self.target, indexed_fields
        )
        self.facade = SearchFacade(self._client, self.target, indexed_fields)

        index_automatically = (
            settings.index_automatically
            if options.index_automatically is None
            else options.index_automatically
        )
        self.indexer: IncrementalIndexer | None = None
        self._owned_executor: ThreadPoolExecutor | None = None
        if index_automatically:
            if executor is None and not inline_hooks:
                self._owned_executor = ThreadPoolExecutor(
                    max_workers=settings.hook_workers,
                    thread_name_prefix="docmirror-hooks",
                )
                executor = self._owned_executor
            self.indexer = IncrementalIndexer(
                self._client, self.target, indexed_fields, executor=executor
            )

        logger.info(
            "Attached '%s' to index '%s' (type '%s', automatic indexing %s).",
            schema.collection,
            self.target.index_name,
            self.target.type_name,
            "on" if self.indexer else "off",
        )

    def close(self) -> None:
        """Wait for pending hooks and stop the plugin's own thread pool."""
        if self._owned_executor is not None:
            self._owned_executor.shutdown(wait=True)
            self._owned_executor = None

    def __enter__(self) -> "SearchPlugin":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def backend(self) -> SearchBackend:
        """The search backend shared by every component."""
        return self._client

    @property
    def client(self) -> Any:
        """The raw search-engine client, e.g. :class:`elasticsearch.Elasticsearch`."""
        return getattr(self._client, "raw", self._client)

    @property
    def notifier(self) -> HookNotifier | None:
        return self.indexer.notifier if self.indexer else None

    def mapping(self) -> MappingDocument:
        return compile_mapping(self.schema)

    def create_new_index(self, index_name: str | None = None) -> IndexStatus:
        return self.index_manager.ensure_index(index_name)

    def create_mappings(self) -> Mapping[str, Any]:
        return self.index_manager.apply_mapping(self.mapping())

    def synchronize(
        self,
        query: Any = None,
        fields: Sequence[str] | None = None,
        batch_size: int | None = None,
    ) -> SyncReport:
        return self.synchronizer.synchronize(query, fields, batch_size)

    def search(
        self,
        query: Mapping[str, Any] | None = None,
        skip: int | None = None,
        limit: int | None = None,
        sort: Any = None,
    ) -> Mapping[str, Any]:
        return self.facade.search(query, skip=skip, limit=limit, sort=sort)

    def index(self, record: Record, **kwargs: Any) -> Mapping[str, Any]:
        return self.facade.index_one(record, **kwargs)

    def unindex(self, record: Record, **kwargs: Any) -> Mapping[str, Any]:
        return self.facade.unindex_one(record, **kwargs)

    def on_save(self, record: Record, created: bool = False) -> Future | None:
        if self.indexer is None:
            return None
        return self.indexer.handle_save(record, created=created)

    def on_remove(self, record: Record | None) -> Future | None:
        if self.indexer is None:
            return None
        return self.indexer.handle_remove(record)
