from __future__ import annotations

from docmirror.common.settings import Settings


def test_defaults(monkeypatch) -> None:
    for var in ("ES_HOST", "BATCH_SIZE", "INDEX_AUTOMATICALLY", "SOFT_DELETE_FIELD", "HOOK_WORKERS"):
        monkeypatch.delenv(var, raising=False)

    settings = Settings(_env_file=None)

    assert settings.es_host == "http://localhost:9200"
    assert settings.batch_size == 100
    assert settings.index_automatically is True
    assert settings.soft_delete_field == "is_deleted"
    assert settings.hook_workers == 4


def test_values_come_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("ES_HOST", "http://search:9200")
    monkeypatch.setenv("BATCH_SIZE", "250")
    monkeypatch.setenv("INDEX_AUTOMATICALLY", "false")

    settings = Settings(_env_file=None)

    assert settings.es_host == "http://search:9200"
    assert settings.batch_size == 250
    assert settings.index_automatically is False
