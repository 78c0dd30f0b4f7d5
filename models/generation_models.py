from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

MAX_IMAGE_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class EncodedImage:
    """An uploaded image packaged for embedding in a JSON request body.

    Attributes:
        mime_type: Reported MIME type, always prefixed with `image/`.
        data: Raw image bytes.
        size_bytes: Length of `data`; never above MAX_IMAGE_BYTES.
    """

    mime_type: str
    data: bytes
    size_bytes: int

    @property
    def b64(self) -> str:
        """Base64 payload as sent in `inlineData.data`."""
        return base64.b64encode(self.data).decode("utf-8")

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.b64}"


@dataclass(frozen=True)
class GenerationResult:
    """Title and keywords returned by the generation service."""

    title: str
    keywords: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PersistedRecord:
    """In-memory representation of one stored generation document.

    Attributes:
        owner_id: Identity the record belongs to.
        timestamp: Creation instant (UTC).
        mime_type: MIME type of the source image.
        title: Generated title.
        keywords: Generated keywords in model order.
    """

    owner_id: str
    timestamp: datetime
    mime_type: str
    title: str
    keywords: List[str] = field(default_factory=list)

    def to_document(self) -> dict:
        """Return the document fields written to the store."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "imageMimeType": self.mime_type,
            "title": self.title,
            "keywords": list(self.keywords),
            "userId": self.owner_id,
        }
