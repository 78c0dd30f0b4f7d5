import asyncio

import pytest

from services.image_ingestor import ImageIngestor
from utils.errors import ValidationError

from fakes import FakeFile


@pytest.mark.asyncio
async def test_newer_selection_wins_over_pending_read() -> None:
    ingestor = ImageIngestor()
    slow = FakeFile(b"first", gate=asyncio.Event())
    fast = FakeFile(b"second", content_type="image/gif")

    first = asyncio.create_task(ingestor.ingest(slow))
    await asyncio.sleep(0)
    second = await ingestor.ingest(fast)
    slow.gate.set()

    assert await first is None
    assert second is not None
    assert second.data == b"second"


@pytest.mark.asyncio
async def test_invalid_selection_still_supersedes_pending_read() -> None:
    ingestor = ImageIngestor()
    slow = FakeFile(b"first", gate=asyncio.Event())

    first = asyncio.create_task(ingestor.ingest(slow))
    await asyncio.sleep(0)
    with pytest.raises(ValidationError):
        await ingestor.ingest(FakeFile(b"notes", content_type="text/plain"))
    slow.gate.set()

    assert await first is None


@pytest.mark.asyncio
async def test_supersede_discards_pending_read() -> None:
    ingestor = ImageIngestor()
    slow = FakeFile(b"first", gate=asyncio.Event())

    pending = asyncio.create_task(ingestor.ingest(slow))
    await asyncio.sleep(0)
    ingestor.supersede()

    assert await pending is None
