"""FastAPI routes for the image title and keyword session."""

from typing import Literal, Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from controllers.image_controller import get_preview, upload_image
from controllers.session_controller import get_session_controller

router = APIRouter(prefix="/session")


@router.get("")
async def get_state_route(request: Request):
	return get_session_controller(request).snapshot().to_dict()


@router.post("/image")
async def upload_image_route(request: Request, file: Optional[UploadFile] = File(None)):
	try:
		return await upload_image(request, file)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/generate")
async def generate_route(request: Request):
	state = await get_session_controller(request).generate()
	return state.to_dict()


@router.get("/preview")
async def preview_route(request: Request):
	"""Return the PNG preview bytes for the staged image."""
	try:
		return await get_preview(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/copy/{field}")
async def copy_route(request: Request, field: Literal["title", "keywords"]):
	"""Return clipboard text for the current result and raise a notification."""
	controller = get_session_controller(request)
	text = controller.copy_title() if field == "title" else controller.copy_keywords()
	if text is None:
		raise HTTPException(status_code=404, detail="Nothing to copy")
	return {"field": field, "text": text}
