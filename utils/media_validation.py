"""Validation helpers for uploaded image content."""

from typing import Optional

from models.generation_models import MAX_IMAGE_BYTES
from utils.errors import ValidationError, ValidationKind

NOT_AN_IMAGE_MESSAGE = "Please upload image files only."
TOO_LARGE_MESSAGE = "Image size cannot exceed 5MB."


def normalize_content_type(content_type: Optional[str]) -> str:
    """Return the lower-cased MIME type without parameters (`image/png; x=y` -> `image/png`)."""
    if not content_type:
        return ""
    return content_type.lower().split(";", 1)[0].strip()


def validate_image_size(size: Optional[int]) -> None:
    """Reject payloads above the 5 MB upload limit. Unknown sizes pass."""
    if size is not None and size > MAX_IMAGE_BYTES:
        raise ValidationError(ValidationKind.TOO_LARGE, TOO_LARGE_MESSAGE)


def validate_image_type(content_type: Optional[str]) -> str:
    """Ensure the reported MIME type is an image type and return it normalized.

    Raises:
        ValidationError: With kind NOT_AN_IMAGE when the type is missing or not `image/*`.
    """
    mime_type = normalize_content_type(content_type)
    if not mime_type.startswith("image/"):
        raise ValidationError(ValidationKind.NOT_AN_IMAGE, NOT_AN_IMAGE_MESSAGE)
    return mime_type


def validate_selected_file(content_type: Optional[str], size: Optional[int]) -> str:
    """Validate the reported metadata of a selected file before reading it.

    Size is checked first so an oversized file is TOO_LARGE whatever its type.
    """
    validate_image_size(size)
    return validate_image_type(content_type)


def validate_image_bytes(data: bytes) -> None:
    """Validate the payload itself once it has been read."""
    validate_image_size(len(data))
