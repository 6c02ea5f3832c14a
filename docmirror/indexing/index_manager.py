"""index_manager.py
Index creation and mapping application for one :class:`IndexTarget`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping

from docmirror.common.client import SearchBackend
from docmirror.common.entities import IndexTarget, MappingDocument

logger = logging.getLogger(__name__)


class IndexStatus(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class IndexManager:
    """Ensures the target index exists and pushes compiled mappings to it."""

    def __init__(self, client: SearchBackend, target: IndexTarget) -> None:
        self._client = client
        self._target = target

    def ensure_index(self, index_name: str | None = None) -> IndexStatus:
        """Create *index_name* (default: the target index) unless it exists.

        Errors from the existence check and from creation propagate.
        """
        index_name = index_name or self._target.index_name

        if self._client.index_exists(index_name):
            logger.info("Index '%s' already exists; skipping creation.", index_name)
            return IndexStatus.ALREADY_EXISTS

        self._client.create_index(index_name)
        logger.info("Created index '%s'.", index_name)
        return IndexStatus.CREATED

    def apply_mapping(
        self,
        mapping: MappingDocument,
        index_name: str | None = None,
        type_name: str | None = None,
    ) -> Mapping[str, Any]:
        """Ensure the index exists, then submit *mapping* as its properties.

        Returns:
            The engine's acknowledgement of the mapping update.
        """
        index_name = index_name or self._target.index_name
        type_name = type_name or self._target.type_name

        self.ensure_index(index_name)
        resp = self._client.put_mapping(
            index=index_name, type=type_name, body={"properties": mapping}
        )
        logger.info(
            "Applied mapping with %d top-level fields to '%s/%s'.",
            len(mapping),
            index_name,
            type_name,
        )
        return resp
