"""Tests for GpgAuthHttpClient."""

import httpx
import pytest

from gpgauth.api.http_client import GpgAuthHttpClient, sanitize_for_log
from gpgauth.config import GpgAuthConfig
from gpgauth.exceptions import TransportError
from gpgauth.tests.utils.mock_transport import MockTransport


@pytest.fixture
def config() -> GpgAuthConfig:
    """Create test config."""
    return GpgAuthConfig(base_url="https://passbolt.test", user_agent="test-agent")


@pytest.fixture
def mock_transport() -> MockTransport:
    """Create mock transport."""
    return MockTransport()


def test_sanitize_for_log_masks_tokens() -> None:
    data = {
        "data[gpg_auth][keyid]": "ABCD",
        "data[gpg_auth][server_verify_token]": "-----BEGIN PGP MESSAGE-----",
        "data[gpg_auth][user_token_result]": "gpgauth:token:gpgauth",
    }

    result = sanitize_for_log(data)

    assert result == {
        "data[gpg_auth][keyid]": "ABCD",
        "data[gpg_auth][server_verify_token]": "***",
        "data[gpg_auth][user_token_result]": "***",
    }
    assert data["data[gpg_auth][server_verify_token]"] == "-----BEGIN PGP MESSAGE-----"


@pytest.mark.asyncio
async def test_send_requires_open_client(config: GpgAuthConfig) -> None:
    client = GpgAuthHttpClient(config)

    with pytest.raises(RuntimeError, match="not initialized"):
        await client.send("GET", "/auth/verify.json")


@pytest.mark.asyncio
async def test_send_posts_form_encoded_body(
    config: GpgAuthConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response()

    async with GpgAuthHttpClient(config, transport=mock_transport) as client:
        await client.send("POST", "/auth/login.json", form={"data[gpg_auth][keyid]": "ABCD"})

    request = mock_transport.requests[0]
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert request.headers["user-agent"] == "test-agent"
    assert str(request.url) == "https://passbolt.test/auth/login.json"
    assert mock_transport.form() == {"data[gpg_auth][keyid]": "ABCD"}


@pytest.mark.asyncio
async def test_send_returns_error_responses(
    config: GpgAuthConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(
        httpx.codes.FORBIDDEN,
        headers={"X-GPGAuth-Error": "true"},
        json_data={"header": {"message": "Invalid key"}},
    )

    async with GpgAuthHttpClient(config, transport=mock_transport) as client:
        response = await client.send("GET", "/auth/verify.json")

    assert response.status_code == 403
    assert response.headers["x-gpgauth-error"] == "true"
    assert response.json()["header"]["message"] == "Invalid key"


@pytest.mark.asyncio
async def test_send_accepts_absolute_urls(
    config: GpgAuthConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response()

    async with GpgAuthHttpClient(config, transport=mock_transport) as client:
        await client.send("GET", "https://other.test/auth/verify.json")

    assert mock_transport.requests[0].url.host == "other.test"


@pytest.mark.asyncio
async def test_send_keeps_cookies_between_requests(
    config: GpgAuthConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(headers={"Set-Cookie": "passbolt_session=abc; Path=/"})
    mock_transport.add_response()

    async with GpgAuthHttpClient(config, transport=mock_transport) as client:
        await client.send("POST", "/auth/login.json")
        await client.send("GET", "/")

    assert mock_transport.requests[1].headers["cookie"] == "passbolt_session=abc"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "message"),
    [
        (httpx.ConnectError("connection refused"), "Request failed: ConnectError"),
        (httpx.ConnectTimeout("connect timeout"), "Request timed out"),
        (httpx.ReadTimeout("read timeout"), "Request timed out"),
    ],
)
async def test_send_wraps_transport_failures(
    config: GpgAuthConfig,
    mock_transport: MockTransport,
    error: Exception,
    message: str,
) -> None:
    mock_transport.add_exception(error)

    async with GpgAuthHttpClient(config, transport=mock_transport) as client:
        with pytest.raises(TransportError, match=message) as exc_info:
            await client.send("POST", "/auth/login.json")

    assert exc_info.value.__cause__ is error
    assert exc_info.value.context["method"] == "POST"


@pytest.mark.asyncio
async def test_close_is_idempotent(config: GpgAuthConfig, mock_transport: MockTransport) -> None:
    client = GpgAuthHttpClient(config, transport=mock_transport)
    async with client:
        assert client.is_open

    assert not client.is_open
    await client.close()
    assert not client.is_open
