import json

import httpx
import pytest

from services.identity.auth_backend import FirebaseAuthBackend, Principal
from utils.errors import AuthFailure


def _backend(handler) -> FirebaseAuthBackend:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FirebaseAuthBackend(http_client, "web-key", base_url="https://auth.test/v1")


@pytest.mark.asyncio
async def test_anonymous_sign_in_notifies_subscribers() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"localId": "uid-1", "idToken": "t"})

    backend = _backend(handler)
    seen = []

    async def listener(principal):
        seen.append(principal)

    await backend.subscribe(listener)
    principal = await backend.sign_in_anonymously()

    assert principal == Principal(id="uid-1", anonymous=True)
    assert seen == [None, principal]
    assert requests[0].url.path == "/v1/accounts:signUp"
    assert requests[0].url.params["key"] == "web-key"
    assert json.loads(requests[0].content) == {"returnSecureToken": True}


@pytest.mark.asyncio
async def test_custom_token_sign_in_sends_token() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"localId": "uid-2"})

    principal = await _backend(handler).sign_in_with_token("custom-token")

    assert principal == Principal(id="uid-2", anonymous=False)
    assert requests[0].url.path == "/v1/accounts:signInWithCustomToken"
    assert json.loads(requests[0].content)["token"] == "custom-token"


@pytest.mark.asyncio
async def test_rejected_sign_in_raises_auth_failure() -> None:
    backend = _backend(lambda request: httpx.Response(400, json={"error": {"message": "ADMIN_ONLY_OPERATION"}}))
    with pytest.raises(AuthFailure):
        await backend.sign_in_anonymously()
    assert backend.current_principal is None


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications() -> None:
    backend = _backend(lambda request: httpx.Response(200, json={"localId": "uid-3"}))
    seen = []

    async def listener(principal):
        seen.append(principal)

    unsubscribe = await backend.subscribe(listener)
    unsubscribe()
    await backend.sign_in_anonymously()

    assert seen == [None]


@pytest.mark.asyncio
async def test_failed_initial_delivery_drops_listener() -> None:
    backend = _backend(lambda request: httpx.Response(200, json={"localId": "uid-4"}))

    async def listener(principal):
        raise RuntimeError("listener broke")

    with pytest.raises(RuntimeError):
        await backend.subscribe(listener)

    assert backend._listeners == []
