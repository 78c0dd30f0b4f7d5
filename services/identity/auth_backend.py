"""Identity backend: anonymous and custom-token sign-in with change notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

import httpx

from utils.app_config import DEFAULT_AUTH_BASE_URL
from utils.errors import AuthFailure

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated entity reported by the backend. `id` may be missing."""

    id: Optional[str]
    anonymous: bool


AuthListener = Callable[[Optional[Principal]], Awaitable[None]]


class AuthBackend(Protocol):
    current_principal: Optional[Principal]

    async def sign_in_anonymously(self) -> Principal: ...

    async def sign_in_with_token(self, token: str) -> Principal: ...

    async def subscribe(self, callback: AuthListener) -> Callable[[], None]: ...


class FirebaseAuthBackend:
    """Identity Toolkit REST client with in-process auth-state notifications.

    `subscribe` delivers the current principal (or None) immediately and again
    after every successful sign-in, mirroring an auth-state-changed listener.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        *,
        base_url: str = DEFAULT_AUTH_BASE_URL,
    ) -> None:
        if http_client is None:
            raise ValueError("An httpx.AsyncClient must be provided.")
        self.http_client = http_client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.current_principal: Optional[Principal] = None
        self._listeners: List[AuthListener] = []

    async def subscribe(self, callback: AuthListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        try:
            await callback(self.current_principal)
        except BaseException:
            # Includes cancellation of a pending sign-in.
            unsubscribe()
            raise
        return unsubscribe

    async def sign_in_anonymously(self) -> Principal:
        body = await self._call("accounts:signUp", {"returnSecureToken": True})
        return await self._set_principal(Principal(id=body.get("localId"), anonymous=True))

    async def sign_in_with_token(self, token: str) -> Principal:
        body = await self._call("accounts:signInWithCustomToken", {"token": token, "returnSecureToken": True})
        return await self._set_principal(Principal(id=body.get("localId"), anonymous=False))

    async def _set_principal(self, principal: Principal) -> Principal:
        self.current_principal = principal
        for listener in list(self._listeners):
            await listener(principal)
        return principal

    async def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self.http_client.post(
                f"{self.base_url}/{method}",
                params={"key": self.api_key},
                json=payload,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            LOGGER.error("Identity call %s rejected with status %s", method, exc.response.status_code)
            raise AuthFailure(f"{method} was rejected (HTTP {exc.response.status_code})") from exc
        except httpx.HTTPError as exc:
            LOGGER.error("Identity call %s failed: %s", method, exc.__class__.__name__)
            raise AuthFailure(f"{method} could not reach the identity service") from exc
        except ValueError as exc:
            raise AuthFailure(f"{method} returned a non-JSON body") from exc
        if not isinstance(body, dict):
            raise AuthFailure(f"{method} returned an unexpected body")
        return body
