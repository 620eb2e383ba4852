"""Tests for the httpx transport boundary."""

import httpx
import pytest
import respx

from judge0_client.config import ClientConfig
from judge0_client.exceptions import MalformedResponse, TransportError
from judge0_client.transport import HttpxTransport, is_retryable_status

BASE_URL = "http://judge0.test"


@pytest.fixture
def transport() -> HttpxTransport:
    config = ClientConfig(
        base_url=BASE_URL,
        authentication_token="auth-token",
        authorization_token="user-token",
    )
    return HttpxTransport(config=config)


@pytest.mark.parametrize(
    ("status_code", "retryable"),
    [(200, False), (201, False), (404, False), (422, False), (429, True), (500, True), (503, True)],
)
def test_is_retryable_status(status_code: int, retryable: bool):
    assert is_retryable_status(status_code=status_code) is retryable


@pytest.mark.asyncio
@respx.mock
async def test_send_injects_auth_headers_and_params(transport: HttpxTransport):
    route = respx.get(f"{BASE_URL}/submissions/abc").mock(
        return_value=httpx.Response(200, json={"token": "abc"})
    )

    response = await transport.send(
        method="GET",
        path="/submissions/abc",
        params={"base64_encoded": "false"},
    )
    await transport.aclose()

    assert response.status_code == 200
    request = route.calls.last.request
    assert request.headers["X-Auth-Token"] == "auth-token"
    assert request.headers["X-Auth-User"] == "user-token"
    assert request.url.params["base64_encoded"] == "false"


@pytest.mark.asyncio
@respx.mock
async def test_send_returns_client_errors(transport: HttpxTransport):
    respx.post(f"{BASE_URL}/submissions").mock(
        return_value=httpx.Response(422, json={"language_id": ["is not valid"]})
    )

    response = await transport.send(method="POST", path="/submissions", json={})
    await transport.aclose()

    assert response.status_code == 422


@pytest.mark.asyncio
@respx.mock
async def test_send_raises_on_server_errors(transport: HttpxTransport):
    respx.get(f"{BASE_URL}/submissions/abc").mock(return_value=httpx.Response(503))

    with pytest.raises(expected_exception=TransportError) as error:
        await transport.send(method="GET", path="/submissions/abc")
    await transport.aclose()

    assert error.value.status_code == 503


@pytest.mark.asyncio
@respx.mock
async def test_send_wraps_network_errors(transport: HttpxTransport):
    respx.get(f"{BASE_URL}/submissions/abc").mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(expected_exception=TransportError) as error:
        await transport.send(method="GET", path="/submissions/abc")
    await transport.aclose()

    assert error.value.status_code is None
    assert isinstance(error.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
@respx.mock
async def test_send_reports_undecodable_bodies_as_malformed(transport: HttpxTransport):
    respx.get(f"{BASE_URL}/submissions/abc").mock(
        side_effect=httpx.DecodingError("incorrect header check")
    )

    with pytest.raises(expected_exception=MalformedResponse) as error:
        await transport.send(method="GET", path="/submissions/abc")
    await transport.aclose()

    assert isinstance(error.value.__cause__, httpx.DecodingError)


@pytest.mark.asyncio
@respx.mock
async def test_send_wraps_redirect_loops(transport: HttpxTransport):
    respx.get(f"{BASE_URL}/submissions/abc").mock(
        side_effect=httpx.TooManyRedirects("Exceeded maximum allowed redirects.")
    )

    with pytest.raises(expected_exception=TransportError) as error:
        await transport.send(method="GET", path="/submissions/abc")
    await transport.aclose()

    assert isinstance(error.value.__cause__, httpx.TooManyRedirects)
