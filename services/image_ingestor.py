"""Turn user-selected files into staged `EncodedImage` values."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from models.generation_models import EncodedImage
from utils.media_validation import validate_image_bytes, validate_selected_file

LOGGER = logging.getLogger(__name__)


class SelectedFile(Protocol):
    """Minimal file interface; FastAPI's `UploadFile` satisfies it."""

    content_type: Optional[str]
    size: Optional[int]

    async def read(self) -> bytes: ...


class ImageIngestor:
    """Validate and decode selected files with last-selection-wins semantics.

    Each call to `ingest` supersedes the previous one. A pending read that is
    overtaken by a newer selection is cancelled and its result is never
    returned, so a slow decode cannot overwrite a newer image.
    """

    def __init__(self) -> None:
        self._selection = 0
        self._pending: Optional[asyncio.Task] = None

    async def ingest(self, file: SelectedFile) -> Optional[EncodedImage]:
        """Validate `file` and return its encoded form.

        Returns:
            The `EncodedImage`, or None when a newer selection superseded this one.

        Raises:
            ValidationError: TOO_LARGE or NOT_AN_IMAGE. Size is checked
                both against the reported size and against the bytes read.
        """
        self._selection += 1
        selection = self._selection
        self._cancel_pending()

        mime_type = validate_selected_file(getattr(file, "content_type", None), getattr(file, "size", None))

        task = asyncio.ensure_future(file.read())
        self._pending = task
        try:
            data = await task
        except asyncio.CancelledError:
            if selection != self._selection:
                LOGGER.debug("Discarded superseded image read (selection %d)", selection)
                return None
            raise
        finally:
            if self._pending is task:
                self._pending = None

        if selection != self._selection:
            LOGGER.debug("Discarded stale image read (selection %d)", selection)
            return None

        validate_image_bytes(data)
        return EncodedImage(mime_type=mime_type, data=data, size_bytes=len(data))

    def supersede(self) -> None:
        """Invalidate any in-flight read without starting a new one."""
        self._selection += 1
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
