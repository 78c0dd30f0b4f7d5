"""Persist generation results under the owner's identity."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol

from models.generation_models import EncodedImage, GenerationResult, PersistedRecord
from models.session_models import Identity
from utils.errors import StorageError

LOGGER = logging.getLogger(__name__)


class DocumentStore(Protocol):
    async def write(self, path: str, record: Dict[str, Any]) -> None: ...


def collection_path(app_namespace: str, owner_id: str) -> str:
    """Return the collection holding one user's generated records."""
    return f"artifacts/{app_namespace}/users/{owner_id}/generated_data"


class ResultStore:
    """Write one append-only record per successful generation."""

    def __init__(
        self,
        documents: Optional[DocumentStore],
        app_namespace: str,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.documents = documents
        self.app_namespace = app_namespace
        self._clock = clock
        self._last_millis = 0

    def is_ready(self) -> bool:
        """Return True when a document store is attached."""
        return self.documents is not None

    def _next_millis(self) -> int:
        # Keys must stay distinct even for writes within the same millisecond.
        millis = int(self._clock() * 1000)
        if millis <= self._last_millis:
            millis = self._last_millis + 1
        self._last_millis = millis
        return millis

    async def persist(self, identity: Identity, image: EncodedImage, result: GenerationResult) -> PersistedRecord:
        """Write a new record for `result` and return it.

        Raises:
            StorageError: If no store is attached or the write fails.
        """
        if self.documents is None:
            raise StorageError("No document store is configured.")

        millis = self._next_millis()
        record = PersistedRecord(
            owner_id=identity.id,
            timestamp=datetime.fromtimestamp(millis / 1000, tz=timezone.utc),
            mime_type=image.mime_type,
            title=result.title,
            keywords=list(result.keywords),
        )
        path = f"{collection_path(self.app_namespace, identity.id)}/data_{millis}"
        try:
            await self.documents.write(path, record.to_document())
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"Failed to persist result at {path}") from exc

        LOGGER.info("Persisted generation result at %s", path)
        return record
