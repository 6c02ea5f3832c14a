from __future__ import annotations

import threading
import time
from unittest.mock import patch

import pytest

from docmirror.common.entities import CopyTo, FieldDescriptor, SchemaDescriptor
from docmirror.indexing.hooks import HookEvent
from docmirror.indexing.index_manager import IndexStatus
from docmirror.plugin import PluginOptions, SearchPlugin


@pytest.fixture
def schema() -> SchemaDescriptor:
    return SchemaDescriptor(
        collection="book",
        fields=(
            FieldDescriptor(
                name="title",
                primitive_type="String",
                indexed=True,
                boost=2.0,
                copy_to=CopyTo(target_field="everything"),
            ),
            FieldDescriptor(name="year", primitive_type="Number", indexed=True),
            FieldDescriptor(name="is_deleted", primitive_type="Boolean"),
            FieldDescriptor(name="owner", primitive_type="ObjectId"),
        ),
    )


def test_target_derived_from_collection(schema, search_client, make_store) -> None:
    plugin = SearchPlugin(schema, make_store(0), {"es_client": search_client})

    assert plugin.target.index_name == "books"
    assert plugin.target.type_name == "book"
    assert plugin.client is search_client


def test_explicit_options_win(schema, search_client, make_store) -> None:
    plugin = SearchPlugin(
        schema,
        make_store(0),
        PluginOptions(index="library", type="volume", es_client=search_client),
    )

    assert (plugin.target.index_name, plugin.target.type_name) == ("library", "volume")


def test_empty_option_values_fall_back_to_collection(schema, search_client, make_store) -> None:
    plugin = SearchPlugin(schema, make_store(0), {"index": "", "type": "", "es_client": search_client})

    assert (plugin.target.index_name, plugin.target.type_name) == ("books", "book")


def test_missing_collection_requires_explicit_names(search_client, make_store) -> None:
    with pytest.raises(ValueError):
        SearchPlugin(SchemaDescriptor(), make_store(0), {"es_client": search_client})


def test_client_is_built_from_hosts_when_not_injected(schema, make_store) -> None:
    with patch("docmirror.plugin.connect") as connect:
        plugin = SearchPlugin(schema, make_store(0), {"hosts": ["http://es1:9200"]})

    connect.assert_called_once_with(["http://es1:9200"])
    assert plugin.backend is connect.return_value
    assert plugin.client is connect.return_value.raw


def test_create_mappings_applies_compiled_schema(schema, search_client, make_store) -> None:
    plugin = SearchPlugin(schema, make_store(0), {"es_client": search_client})

    plugin.create_mappings()

    assert search_client.names() == ["index_exists", "create_index", "put_mapping"]
    assert search_client.mappings["books"] == {
        "properties": {
            "title": {"type": "text", "boost": 2.0, "copy_to": "everything"},
            "everything": {"type": "text"},
            "year": {"type": "float"},
        }
    }


def test_create_new_index(schema, search_client, make_store) -> None:
    plugin = SearchPlugin(schema, make_store(0), {"es_client": search_client})

    assert plugin.create_new_index() is IndexStatus.CREATED
    assert plugin.create_new_index() is IndexStatus.ALREADY_EXISTS
    assert plugin.create_new_index("books_v2") is IndexStatus.CREATED


def test_synchronize_uses_indexed_fields(schema, search_client, make_store) -> None:
    store = make_store(3, owner="u1", is_deleted=False)
    plugin = SearchPlugin(schema, store, {"es_client": search_client})

    report = plugin.synchronize()

    assert report.indexed == 3
    assert search_client.documents["books"]["id-0001"] == {"title": "Title 1", "year": 2001}


def test_hooks_follow_record_lifecycle(schema, search_client, make_store) -> None:
    plugin = SearchPlugin(
        schema, make_store(0), {"es_client": search_client}, inline_hooks=True
    )
    removed = []
    plugin.notifier.subscribe(HookEvent.REMOVED, removed.append)

    plugin.on_save({"_id": "b1", "title": "Dune", "year": 1965, "is_deleted": False}, created=True)
    assert search_client.documents["books"]["b1"] == {"title": "Dune", "year": 1965}

    plugin.on_save({"_id": "b1", "title": "Dune", "year": 1965, "is_deleted": True})
    assert "b1" not in search_client.documents["books"]

    plugin.on_remove({"_id": "b2"})
    assert [n.record_id for n in removed] == ["b1", "b2"]


def test_automatic_indexing_can_be_disabled(schema, search_client, make_store) -> None:
    plugin = SearchPlugin(
        schema, make_store(0), {"es_client": search_client, "index_automatically": False}
    )

    assert plugin.indexer is None
    assert plugin.notifier is None
    assert plugin.on_save({"_id": "b1", "is_deleted": False}) is None
    assert plugin.on_remove({"_id": "b1"}) is None
    assert search_client.calls == []


def test_search_and_manual_index(schema, search_client, make_store) -> None:
    plugin = SearchPlugin(schema, make_store(0), {"es_client": search_client})

    plugin.index({"_id": "b1", "title": "Dune", "owner": "u1"})
    plugin.search({"query": {"match": {"title": "dune"}}}, limit=3)
    plugin.unindex({"_id": "b1"})

    assert search_client.names() == ["index", "search", "delete"]
    assert search_client.calls[0][1]["body"] == {"title": "Dune"}
    assert search_client.calls[1][1]["size"] == 3


def test_hooks_run_in_background_by_default(schema, search_client, make_store) -> None:
    release = threading.Event()
    original_index = search_client.index

    def slow_index(*args, **kwargs):
        release.wait(timeout=5)
        return original_index(*args, **kwargs)

    search_client.index = slow_index
    indexed = []
    with SearchPlugin(schema, make_store(0), {"es_client": search_client}) as plugin:
        plugin.notifier.subscribe(HookEvent.INDEXED, indexed.append)

        started = time.monotonic()
        future = plugin.on_save({"_id": "b1", "title": "Dune", "is_deleted": False})
        assert time.monotonic() - started < 0.25
        assert indexed == []

        release.set()
        notification = future.result(timeout=5)

    assert notification.ok
    assert [n.record_id for n in indexed] == ["b1"]
    assert search_client.documents["books"]["b1"] == {"title": "Dune"}


def test_close_waits_for_pending_hooks(schema, search_client, make_store) -> None:
    original_delete = search_client.delete

    def slow_delete(*args, **kwargs):
        time.sleep(0.2)
        return original_delete(*args, **kwargs)

    search_client.delete = slow_delete
    search_client.documents["books"]["b1"] = {"title": "Dune"}
    plugin = SearchPlugin(schema, make_store(0), {"es_client": search_client})

    plugin.on_remove({"_id": "b1"})
    plugin.close()

    assert "b1" not in search_client.documents["books"]
