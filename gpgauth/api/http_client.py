"""
Async HTTP transport for GPGAuth servers.

Sends form-encoded requests and hands the raw response back: the handshake
reads protocol headers, so status handling is left to the caller.
"""

import asyncio
from typing import Any

import httpx
import structlog

from gpgauth.config import GpgAuthConfig
from gpgauth.exceptions import TransportError

logger = structlog.get_logger(__name__)

SENSITIVE_KEYS = frozenset(
    {
        "data[gpg_auth][server_verify_token]",
        "data[gpg_auth][user_token_result]",
        "passphrase",
    }
)


def sanitize_for_log(form: dict[str, str]) -> dict[str, str]:
    """Copy of a form with sensitive values replaced by "***"."""
    return {key: "***" if key in SENSITIVE_KEYS else value for key, value in form.items()}


class GpgAuthHttpClient:
    """Async HTTP client for GPGAuth endpoints."""

    def __init__(
        self,
        config: GpgAuthConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            config: Client configuration.
            transport: Optional transport for testing (mock transport).
        """
        self._config = config
        self._transport = transport

        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def __aenter__(self) -> "GpgAuthHttpClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self._config.server_url,
                    timeout=self._config.timeout,
                    transport=self._transport,
                    headers={
                        "Accept": "application/json",
                        "User-Agent": self._config.user_agent,
                    },
                )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client. Idempotent."""
        async with self._client_lock:
            if self._client is None:
                logger.debug("Client not open.")
                return
            await self._client.aclose()
            self._client = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def send(
        self,
        method: str,
        url: str,
        *,
        form: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Send a request and return the response whatever its status.

        Cookies set by the server are kept by the underlying client.

        Args:
            method: HTTP method (GET, POST).
            url: Absolute URL, or path relative to the configured base URL.
            form: Form fields, sent form-encoded.

        Returns:
            The response. Its body is read; ``response.json()`` may still fail.

        Raises:
            TransportError: If the request fails due to network issues or times out.
        """
        if self._client is None:
            msg = "HTTP client not initialized. Use 'async with' first."
            raise RuntimeError(msg)

        logger.debug("Sending request", method=method, url=url, form=sanitize_for_log(form or {}))
        try:
            response = await self._client.request(method=method, url=url, data=form)
        except httpx.TimeoutException as e:
            msg = "Request timed out"
            raise TransportError(msg, method=method, url=url) from e
        except httpx.TransportError as e:
            msg = f"Request failed: {type(e).__name__}"
            raise TransportError(msg, method=method, url=url) from e

        logger.debug("Received response", method=method, url=url, status=response.status_code)
        return response
