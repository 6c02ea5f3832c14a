"""hooks.py
Incremental indexing driven by record save / remove notifications.

The store driver calls :meth:`IncrementalIndexer.handle_save` after every
save and :meth:`IncrementalIndexer.handle_remove` after every removal.  The
store write has already committed at that point, so indexing failures are
published on a :class:`HookNotifier` and never raised back to the driver.

Routing of a save depends on the record's soft-delete marker, compared as a
lowercase string:

* ``"true"``  – the record is soft-deleted: delete its document,
* ``"false"`` – create or overwrite its document,
* anything else (including a missing marker) – ignored.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Sequence

from docmirror.common.client import SearchBackend
from docmirror.common.entities import ChangeEvent, ChangeKind, IndexTarget
from docmirror.common.settings import settings
from docmirror.common.store import Record, record_id
from docmirror.indexing.documents import build_document

logger = logging.getLogger(__name__)


class HookEvent(str, Enum):
    INDEXED = "indexed"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class HookNotification:
    event: HookEvent
    record_id: str | None
    error: BaseException | None = None
    response: Mapping[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


Listener = Callable[[HookNotification], None]


class HookNotifier:
    """Named notification channel owned by the incremental indexer."""

    def __init__(self) -> None:
        self._listeners: dict[HookEvent, list[Listener]] = defaultdict(list)

    def subscribe(self, event: HookEvent | str, listener: Listener) -> None:
        self._listeners[HookEvent(event)].append(listener)

    def unsubscribe(self, event: HookEvent | str, listener: Listener) -> None:
        listeners = self._listeners[HookEvent(event)]
        if listener in listeners:
            listeners.remove(listener)

    def publish(self, notification: HookNotification) -> None:
        for listener in list(self._listeners[notification.event]):
            try:
                listener(notification)
            except Exception:
                logger.exception(
                    "Listener for '%s' failed on record %s.",
                    notification.event.value,
                    notification.record_id,
                )


def classify(
    record: Record, marker_field: str, created: bool = False
) -> ChangeEvent | None:
    """Turn a saved record into a change event, or None when it is ignored."""
    marker = str(record.get(marker_field)).lower()
    if marker == "true":
        return ChangeEvent(record=record, kind=ChangeKind.DELETED)
    if marker == "false":
        kind = ChangeKind.CREATED if created else ChangeKind.UPDATED
        return ChangeEvent(record=record, kind=kind)
    return None


class IncrementalIndexer:
    """Keeps single documents in step with record lifecycle events.

    Args:
        client: Search backend shared with the other components.
        target: Index/type every change is written to.
        indexed_fields: Field selection applied to indexed documents; empty
            means the full record.
        executor: Runs the engine calls in the background when given;
            otherwise they run inline before the hook returns.
        marker_field: Record field holding the soft-delete marker.
    """

    def __init__(
        self,
        client: SearchBackend,
        target: IndexTarget,
        indexed_fields: Sequence[str] = (),
        executor: Executor | None = None,
        marker_field: str | None = None,
        notifier: HookNotifier | None = None,
    ) -> None:
        self._client = client
        self._target = target
        self._indexed_fields = tuple(indexed_fields)
        self._executor = executor
        self._marker_field = marker_field or settings.soft_delete_field
        self.notifier = notifier or HookNotifier()

    def handle_save(self, record: Record, created: bool = False) -> Future | None:
        event = classify(record, self._marker_field, created)
        if event is None:
            logger.debug(
                "Ignoring save of %s: '%s' is %r.",
                record_id(record),
                self._marker_field,
                record.get(self._marker_field),
            )
            return None
        return self._submit(event)

    def handle_remove(self, record: Record | None) -> Future | None:
        if record is None:
            return None
        return self._submit(ChangeEvent(record=record, kind=ChangeKind.DELETED))

    def apply(self, event: ChangeEvent) -> HookNotification:
        """Perform the engine call for *event* and publish its outcome."""
        doc_id = record_id(event.record)
        hook_event = (
            HookEvent.REMOVED if event.kind is ChangeKind.DELETED else HookEvent.INDEXED
        )
        try:
            if doc_id is None:
                raise ValueError("Record has no identifier")
            if hook_event is HookEvent.REMOVED:
                resp = self._client.delete(
                    index=self._target.index_name,
                    type=self._target.type_name,
                    id=doc_id,
                )
            else:
                resp = self._client.index(
                    index=self._target.index_name,
                    type=self._target.type_name,
                    id=doc_id,
                    body=build_document(event.record, self._indexed_fields),
                )
        except Exception as exc:
            logger.warning(
                "Hook %s failed for record %s: %s", event.kind.value, doc_id, exc
            )
            notification = HookNotification(hook_event, doc_id, error=exc)
        else:
            notification = HookNotification(hook_event, doc_id, response=resp)

        self.notifier.publish(notification)
        return notification

    def _submit(self, event: ChangeEvent) -> Future | None:
        if self._executor is None:
            self.apply(event)
            return None
        return self._executor.submit(self.apply, event)
