"""Preview generator service.

Provides a small OOP wrapper around Pillow to render a bounded PNG
preview of a staged image. The preview fits within 320x320 pixels by
default and is returned as raw PNG bytes.

Public class: `ThumbnailGenerator`

Example:
    tg = ThumbnailGenerator(max_size=(320, 320))
    png = tg.create_thumbnail(encoded_image.data)
"""
from __future__ import annotations

import io
from typing import Tuple

from PIL import Image


class ThumbnailGenerator:
    """Generate previews from image bytes.

    Args:
        max_size: Maximum width and height for the preview. Defaults to (320, 320).
        background: Optional background color used when flattening images with alpha.
            If None, images with alpha are flattened against white.
    """

    def __init__(self, max_size: Tuple[int, int] = (320, 320), background: Tuple[int, int, int] | None = None):
        self.max_size = max_size
        self.background = background or (255, 255, 255)

    def create_thumbnail(self, data: bytes) -> bytes:
        """Create a PNG preview from raw image bytes.

        Raises:
            ValueError: If the bytes cannot be opened as an image.
        """
        try:
            src = Image.open(io.BytesIO(data))
            src.load()
        except Exception as exc:
            raise ValueError("Image bytes are not a supported image format") from exc

        src = src.convert("RGBA")
        src.thumbnail(self.max_size, Image.LANCZOS)

        # Flatten alpha against the background color
        background = Image.new("RGB", src.size, self.background)
        background.paste(src, mask=src.split()[3])

        out_io = io.BytesIO()
        background.save(out_io, format="PNG", optimize=True)
        return out_io.getvalue()
