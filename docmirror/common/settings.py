"""Settings shared by *indexing* and *search*.

All values are sourced from environment variables (or a ``.env`` file loaded at
import time).  They control the Elasticsearch connection and the defaults used
when a collection is attached without explicit options.
"""

from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(override=True)


class Settings(BaseSettings):
    """Search mirroring configuration.

    Fields
    ------
    es_host
        Elasticsearch HTTP endpoint used when no client or hosts are given.
    request_timeout
        Per-request timeout in seconds passed to the Elasticsearch client.
    connect_retries
        Number of pings attempted before giving up on the cluster.
    connect_retry_delay
        Seconds to wait between two failed pings.
    batch_size
        Records fetched and bulk-written per synchronization batch.
    index_automatically
        Wire save/remove hooks so changes are pushed as they happen.
    soft_delete_field
        Record field holding the soft-delete marker inspected by the save hook.
    show_progress
        Display a progress bar while synchronizing.
    hook_workers
        Threads running save/remove hooks when no executor is supplied.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    es_host: str = Field("http://localhost:9200")
    request_timeout: int = Field(10)
    connect_retries: int = Field(6)
    connect_retry_delay: float = Field(5.0)

    batch_size: int = Field(100)
    index_automatically: bool = Field(True)
    soft_delete_field: str = Field("is_deleted")
    show_progress: bool = Field(False)
    hook_workers: int = Field(4)


settings = Settings()
