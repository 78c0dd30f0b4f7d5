from fastapi import Request, UploadFile, HTTPException
from fastapi.responses import Response
from typing import Dict, Any, Optional
import asyncio
import logging

from controllers.session_controller import get_session_controller
from services.thumbnail_generator import ThumbnailGenerator

LOGGER = logging.getLogger(__name__)


async def upload_image(request: Request, file: Optional[UploadFile]) -> Dict[str, Any]:
    """Stage an uploaded image in the session.

    Args:
        request: FastAPI Request object (used to access app.state for the session).
        file: Uploaded image, or None to clear the current selection.

    Returns:
        The session state after staging. Validation failures are reported in
        its `error` field rather than as HTTP errors.
    """
    controller = get_session_controller(request)
    state = await controller.select_image(file)
    return state.to_dict()


async def get_preview(request: Request) -> Response:
    """Return a PNG preview of the currently staged image.

    Raises:
        HTTPException(404) if no image is staged.
        HTTPException(415) if the staged bytes cannot be rendered.
    """
    image = get_session_controller(request).state.image
    if image is None:
        raise HTTPException(status_code=404, detail="No image selected")

    # Pillow decoding is blocking -> run in thread
    try:
        png = await asyncio.to_thread(ThumbnailGenerator().create_thumbnail, image.data)
    except ValueError as exc:
        LOGGER.warning("Preview rendering failed for %s: %s", image.mime_type, exc)
        raise HTTPException(status_code=415, detail="Preview not available for this image") from exc

    return Response(content=png, media_type="image/png")
