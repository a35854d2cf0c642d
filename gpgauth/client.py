"""
GPGAuth client facade.

This is the main entry point for users of the library. It owns the HTTP client
and runs every handshake on a fresh AuthSession.
"""

import asyncio
from typing import Self

import httpx
import structlog

from gpgauth.api.http_client import GpgAuthHttpClient
from gpgauth.config import GpgAuthConfig
from gpgauth.crypto.protocol import GpgAuthCrypto, Keyring
from gpgauth.models.auth import ServerKey
from gpgauth.services.auth_session import AuthSession
from gpgauth.services.header_validator import HeaderValidator

logger = structlog.get_logger(__name__)


class GpgAuthClient:
    """
    Async client for GPGAuth servers.

    Example:
        ```python
        keyring = PgpyKeyring()
        keyring.import_private_key(armored_private_key)
        keyring.import_server_key("https://passbolt.example.com", armored_server_key)
        crypto = PgpyCrypto(keyring)

        config = GpgAuthConfig(base_url="https://passbolt.example.com")
        async with GpgAuthClient(config, crypto=crypto, keyring=keyring) as client:
            print(await client.verify())
            referrer = await client.login("passphrase")
        ```

    Args:
        config: Client configuration.
        crypto: Encrypt/decrypt collaborator.
        keyring: Private key collaborator.
        transport: Optional httpx transport for testing (mock transport).
    """

    def __init__(
        self,
        config: GpgAuthConfig,
        *,
        crypto: GpgAuthCrypto,
        keyring: Keyring,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._crypto = crypto
        self._keyring = keyring
        self._headers = HeaderValidator(
            prefix=config.header_prefix,
            protocol_version=config.protocol_version,
        )
        self._http = GpgAuthHttpClient(config, transport=transport)
        self._init_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        """Enter async context."""
        await self._http.__aenter__()
        logger.debug("Client initialized")
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        """Exit async context."""
        await self.close()

    async def close(self) -> None:
        """Close the client and release resources."""
        async with self._init_lock:
            await self._http.close()
            logger.debug("Client closed")

    def new_session(self) -> AuthSession:
        """Create a session for one handshake. A failed session cannot be reused."""
        if not self._http.is_open:
            msg = "Client not initialized. Use 'async with' first."
            raise RuntimeError(msg)
        return AuthSession(
            self._http,
            self._crypto,
            self._keyring,
            self._config,
            header_validator=self._headers,
        )

    async def verify(
        self,
        server_url: str | None = None,
        server_public_key: str | None = None,
        user_fingerprint: str | None = None,
    ) -> str:
        """
        Verify the server holds the private half of its advertised key.

        Returns:
            Human readable confirmation.

        Raises:
            ServerKeyUnverified: If the server failed the challenge.
            GpgAuthError: If the handshake failed.
        """
        session = self.new_session()
        return await session.verify(server_url, server_public_key, user_fingerprint)

    async def login(self, passphrase: str) -> str:
        """
        Log in with the user's private key.

        Args:
            passphrase: Private key passphrase.

        Returns:
            Referrer URL to continue to. The session cookie stays in the client.

        Raises:
            InvalidPassphrase: If the passphrase does not unlock the key.
            GpgAuthError: If the handshake failed.
        """
        session = self.new_session()
        return await session.login(passphrase)

    async def get_server_key(self, server_url: str | None = None) -> ServerKey:
        """
        Fetch the public key the server advertises.

        The key is not trusted by this call; import it into the keyring first.
        """
        session = self.new_session()
        return await session.get_server_key(server_url)
