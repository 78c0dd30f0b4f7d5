"""Establish the session identity from the auth backend."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional

from models.session_models import Identity
from services.identity.auth_backend import AuthBackend, Principal
from utils.errors import AuthFailure

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityEvent:
    """One element of the identity stream: ready, not ready, or failed."""

    identity: Optional[Identity] = None
    failure: Optional[AuthFailure] = None

    @property
    def ready(self) -> bool:
        return self.identity is not None


IdentityListener = Callable[[IdentityEvent], None]


class IdentityProvider:
    """Sign in once per cold start and publish the resulting identity.

    On each auth-state notification without a principal, the first one
    triggers sign-in: the continuation token if configured, falling back to
    anonymous sign-in. Later notifications never sign in again. The identity
    is fixed once published.
    """

    def __init__(self, backend: AuthBackend, initial_token: Optional[str] = None) -> None:
        self.backend = backend
        self.initial_token = initial_token
        self.identity: Optional[Identity] = None
        self.failure: Optional[AuthFailure] = None
        self._listeners: List[IdentityListener] = []
        self._sign_in_attempted = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def ready(self) -> bool:
        return self.identity is not None

    def add_listener(self, listener: IdentityListener) -> Callable[[], None]:
        """Register `listener` for identity events and return a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def ensure_identity(self) -> None:
        """Subscribe to auth-state changes; a no-op when already subscribed."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = await self.backend.subscribe(self._on_auth_state)

    def close(self) -> None:
        """Release the backend subscription."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_auth_state(self, principal: Optional[Principal]) -> None:
        if principal is not None:
            self._publish_identity(principal)
            return
        if self.identity is not None or self._sign_in_attempted:
            return

        self._sign_in_attempted = True
        self._emit(IdentityEvent())
        try:
            signed_in = await self._sign_in()
        except AuthFailure as exc:
            LOGGER.error("Authentication failed: %s", exc)
            self.failure = exc
            self._emit(IdentityEvent(failure=exc))
            return
        self._publish_identity(signed_in)

    async def _sign_in(self) -> Principal:
        if self.initial_token:
            try:
                return await self.backend.sign_in_with_token(self.initial_token)
            except AuthFailure as exc:
                LOGGER.warning("Token sign-in rejected, falling back to anonymous sign-in: %s", exc)
        return await self.backend.sign_in_anonymously()

    def _publish_identity(self, principal: Principal) -> None:
        if self.identity is not None:
            return
        identity_id = principal.id
        if not identity_id:
            identity_id = str(uuid.uuid4())
            LOGGER.warning("Principal has no identifier; using generated id %s", identity_id)
        self.identity = Identity(id=identity_id, anonymous=principal.anonymous)
        LOGGER.info("Identity ready (anonymous=%s)", principal.anonymous)
        self._emit(IdentityEvent(identity=self.identity))

    def _emit(self, event: IdentityEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
