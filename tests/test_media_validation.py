import base64

import pytest

from models.generation_models import MAX_IMAGE_BYTES
from services.image_ingestor import ImageIngestor
from utils.errors import ValidationError, ValidationKind
from utils.media_validation import normalize_content_type, validate_selected_file

from fakes import FakeFile


@pytest.mark.parametrize("content_type", ["text/plain", "application/pdf", "video/mp4", "", None, "imagex/png"])
@pytest.mark.asyncio
async def test_non_image_types_are_rejected(content_type) -> None:
    ingestor = ImageIngestor()
    file = FakeFile(b"hello", content_type=content_type)

    with pytest.raises(ValidationError) as excinfo:
        await ingestor.ingest(file)

    assert excinfo.value.kind is ValidationKind.NOT_AN_IMAGE
    assert file.reads == 0


@pytest.mark.asyncio
async def test_image_round_trips_through_base64() -> None:
    data = bytes(range(256)) * 10
    encoded = await ImageIngestor().ingest(FakeFile(data, content_type="image/JPEG; charset=binary"))

    assert encoded is not None
    assert encoded.mime_type == "image/jpeg"
    assert encoded.size_bytes == len(data)
    assert base64.b64decode(encoded.b64) == data
    assert encoded.data_url.startswith("data:image/jpeg;base64,")


@pytest.mark.asyncio
async def test_exact_size_limit_is_accepted() -> None:
    data = b"\x00" * MAX_IMAGE_BYTES
    encoded = await ImageIngestor().ingest(FakeFile(data))
    assert encoded is not None
    assert encoded.size_bytes == MAX_IMAGE_BYTES


@pytest.mark.parametrize("content_type", ["image/png", "application/zip"])
@pytest.mark.asyncio
async def test_oversized_files_are_too_large_whatever_the_type(content_type) -> None:
    file = FakeFile(b"x", content_type=content_type, size=MAX_IMAGE_BYTES + 1)

    with pytest.raises(ValidationError) as excinfo:
        await ImageIngestor().ingest(file)

    assert excinfo.value.kind is ValidationKind.TOO_LARGE


@pytest.mark.asyncio
async def test_size_is_checked_after_reading_when_not_reported() -> None:
    file = FakeFile(b"\x01" * (MAX_IMAGE_BYTES + 1), size=None)

    with pytest.raises(ValidationError) as excinfo:
        await ImageIngestor().ingest(file)

    assert excinfo.value.kind is ValidationKind.TOO_LARGE


@pytest.mark.asyncio
async def test_empty_image_is_accepted() -> None:
    encoded = await ImageIngestor().ingest(FakeFile(b"", content_type="image/png"))

    assert encoded is not None
    assert encoded.size_bytes == 0
    assert base64.b64decode(encoded.b64) == b""


def test_normalize_content_type() -> None:
    assert normalize_content_type(" IMAGE/PNG ; q=1") == "image/png"
    assert normalize_content_type(None) == ""
    assert validate_selected_file("image/webp", 10) == "image/webp"
