"""synchronizer.py
One-shot (re)synchronization of existing store records into Elasticsearch.

Workflow
---------
1. Count the records matching the query and derive the number of batches.
2. For every batch index ``b``: fetch ``limit=batch_size`` records after
   ``skip=b * batch_size``, projected to the field selection.
3. Bulk-write the page as a single request.

Batches run strictly one after the other.  The first failing fetch or bulk
write aborts the run; batches already written stay in the index, and a rerun
heals the gap because documents are keyed by record id.

Skip/limit pagination is not a snapshot: records written to the store while
a long run is in progress can be skipped or visited twice.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from tqdm import tqdm

from docmirror.common.client import SearchBackend
from docmirror.common.entities import IndexTarget, SyncJob, SyncReport
from docmirror.common.settings import settings
from docmirror.common.store import RecordStore, record_id
from docmirror.indexing.documents import bulk_body, select_fields

logger = logging.getLogger(__name__)


class SynchronizationError(RuntimeError):
    """Raised when a batch could not be fetched or written."""

    def __init__(self, message: str, batch: int) -> None:
        super().__init__(message)
        self.batch = batch


class BatchSynchronizer:
    """Pushes all (or a filtered subset of) store records into the index."""

    def __init__(
        self,
        store: RecordStore,
        client: SearchBackend,
        target: IndexTarget,
        indexed_fields: Sequence[str] = (),
        show_progress: bool | None = None,
    ) -> None:
        self._store = store
        self._client = client
        self._target = target
        self._indexed_fields = tuple(indexed_fields)
        self._show_progress = (
            settings.show_progress if show_progress is None else show_progress
        )

    def plan(
        self,
        query: Any = None,
        fields: Sequence[str] | None = None,
        batch_size: int | None = None,
    ) -> SyncJob:
        """Normalize the call arguments and count the matching records."""
        if not isinstance(query, Mapping):
            if query is not None:
                logger.warning("Ignoring non-mapping sync query %r.", query)
            query = {}
        if not batch_size or batch_size <= 0:
            batch_size = settings.batch_size
        selection = tuple(select_fields(self._indexed_fields, fields))

        total = self._store.count(query)
        return SyncJob(
            query=dict(query),
            fields=selection,
            batch_size=batch_size,
            total=total,
        )

    def synchronize(
        self,
        query: Any = None,
        fields: Sequence[str] | None = None,
        batch_size: int | None = None,
    ) -> SyncReport:
        """Synchronize the records matching *query*.

        Args:
            query: Store filter; anything that is not a mapping means all records.
            fields: Field selection overriding the schema's indexed fields.
            batch_size: Records per batch (defaults to ``settings.batch_size``).

        Returns:
            A :class:`SyncReport` once every batch is acknowledged without errors.

        Raises:
            SynchronizationError: A batch fetch failed, held a record without
                an identifier or its bulk write reported item errors.  Later batches are not attempted.
        """
        job = self.plan(query, fields, batch_size)
        logger.info(
            "%s - total documents to synchronize: %d",
            self._target.index_name,
            job.total,
        )
        logger.info("%s - batch size: %d", self._target.index_name, job.batch_size)

        indexed = 0
        with tqdm(
            total=job.total,
            desc=f"Synchronizing {self._target.index_name}",
            unit="doc",
            disable=not self._show_progress,
        ) as progress:
            for batch in range(job.batches):
                written = self._run_batch(job, batch)
                indexed += written
                progress.update(written)

        return SyncReport(total=job.total, batches=job.batches, indexed=indexed)

    def _run_batch(self, job: SyncJob, batch: int) -> int:
        """Fetch and bulk-write batch number *batch*; return its size."""
        try:
            records = self._store.find(
                job.query,
                job.fields or None,
                skip=batch * job.batch_size,
                limit=job.batch_size,
            )
        except Exception as exc:
            raise SynchronizationError(
                f"Fetching batch {batch} of {job.batches} failed: {exc}", batch
            ) from exc

        if not records:
            logger.warning("Batch %d of %d returned no records.", batch, job.batches)
            return 0

        missing = sum(1 for record in records if record_id(record) is None)
        if missing:
            raise SynchronizationError(
                f"Batch {batch} of {job.batches} holds {missing} record(s) without an identifier",
                batch,
            )

        try:
            resp = self._client.bulk(bulk_body(records, self._target, job.fields))
        except Exception as exc:
            raise SynchronizationError(
                f"Bulk write of batch {batch} of {job.batches} failed: {exc}", batch
            ) from exc

        if resp.get("errors"):
            raise SynchronizationError(
                f"Bulk write of batch {batch} of {job.batches} reported item errors",
                batch,
            )

        logger.info(
            "Indexed %d documents into '%s' (batch %d/%d).",
            len(records),
            self._target.index_name,
            batch + 1,
            job.batches,
        )
        return len(records)
