"""Test doubles shared across the test modules."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx

from controllers.session_controller import SessionController
from services.gemini.generation_client import GenerationClient
from services.identity.auth_backend import Principal
from services.identity.identity_provider import IdentityProvider
from services.image_ingestor import ImageIngestor
from services.notifier import LoggingNotifier
from services.result_store import ResultStore
from utils.errors import AuthFailure, StorageError

_UNSET = object()


class FakeFile:
    """Stand-in for an UploadFile; `gate` holds `read()` until it is set."""

    def __init__(self, data: bytes, content_type: Optional[str] = "image/png", size: Any = _UNSET, gate: Optional[asyncio.Event] = None) -> None:
        self._data = data
        self.content_type = content_type
        self.size = len(data) if size is _UNSET else size
        self.gate = gate
        self.reads = 0

    async def read(self) -> bytes:
        self.reads += 1
        if self.gate is not None:
            await self.gate.wait()
        return self._data


class FakeAuthBackend:
    def __init__(
        self,
        principal: Optional[Principal] = None,
        *,
        anonymous_id: Optional[str] = "anon-123",
        token_id: Optional[str] = "user-456",
        reject_token: bool = False,
        reject_anonymous: bool = False,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.gate = gate
        self.current_principal = principal
        self.anonymous_id = anonymous_id
        self.token_id = token_id
        self.reject_token = reject_token
        self.reject_anonymous = reject_anonymous
        self.calls: List[str] = []
        self.listeners: List[Any] = []

    async def subscribe(self, callback):
        self.listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self.listeners:
                self.listeners.remove(callback)

        try:
            await callback(self.current_principal)
        except BaseException:
            unsubscribe()
            raise
        return unsubscribe

    async def sign_in_anonymously(self) -> Principal:
        self.calls.append("anonymous")
        await self._wait()
        if self.reject_anonymous:
            raise AuthFailure("anonymous sign-in rejected")
        return await self.notify(Principal(id=self.anonymous_id, anonymous=True))

    async def sign_in_with_token(self, token: str) -> Principal:
        self.calls.append(f"token:{token}")
        await self._wait()
        if self.reject_token:
            raise AuthFailure("token rejected")
        return await self.notify(Principal(id=self.token_id, anonymous=False))

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    async def notify(self, principal: Optional[Principal]) -> Optional[Principal]:
        self.current_principal = principal
        for listener in list(self.listeners):
            await listener(principal)
        return principal


class FakeDocumentStore:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.writes: List[tuple] = []

    async def write(self, path: str, record: Dict[str, Any]) -> None:
        if self.fail:
            raise StorageError("disk full")
        if any(existing == path for existing, _ in self.writes):
            raise StorageError(f"Document already exists at {path}")
        self.writes.append((path, record))


def gemini_body(title: Any = "Sunset", keywords: Any = ("sky", "orange")) -> Dict[str, Any]:
    """Build a generateContent response whose single part holds the JSON result."""
    payload: Dict[str, Any] = {}
    if title is not None:
        payload["title"] = title
    if keywords is not None:
        payload["keywords"] = list(keywords) if isinstance(keywords, tuple) else keywords
    return {"candidates": [{"content": {"parts": [{"text": json.dumps(payload)}]}}]}


class Harness:
    """Session controller wired to fakes, with a programmable generation endpoint."""

    def __init__(self, *, backend=None, documents=None, responses=None) -> None:
        self.backend = backend or FakeAuthBackend()
        self.documents = documents if documents is not None else FakeDocumentStore()
        self.responses = list(responses or [])
        self.requests: List[httpx.Request] = []
        self.gate: Optional[asyncio.Event] = None

        async def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if self.gate is not None:
                await self.gate.wait()
            return self.responses.pop(0) if self.responses else httpx.Response(200, json=gemini_body())

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        self.notifier = LoggingNotifier()
        self.controller = SessionController(
            identity_provider=IdentityProvider(self.backend),
            ingestor=ImageIngestor(),
            generation_client=GenerationClient(http_client, "key"),
            result_store=ResultStore(self.documents, "app"),
            notifier=self.notifier,
        )

    async def start(self) -> None:
        """Mount the controller and wait for the background sign-in to settle."""
        await self.controller.start()
        await self.controller.wait_for_identity()
