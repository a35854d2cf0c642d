"""
GPGAuth authentication session.

Drives the server verification flow and the two-stage login handshake.
"""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx
import structlog

from gpgauth.api.endpoints.auth import get_server_key, login_stage1, login_stage2, verify
from gpgauth.api.http_client import GpgAuthHttpClient
from gpgauth.config import GpgAuthConfig
from gpgauth.crypto.protocol import GpgAuthCrypto, Keyring
from gpgauth.exceptions import (
    DecryptionFailure,
    EncryptionFailure,
    GpgAuthError,
    InvalidPassphrase,
    MalformedServerResponse,
    MalformedToken,
    ServerKeyUnverified,
    ServerRejected,
    SessionStateError,
)
from gpgauth.models.auth import SESSION_TRANSITIONS, ServerKey, SessionStage
from gpgauth.models.headers import AuthHeaderSet, AuthStage
from gpgauth.models.token import Token
from gpgauth.services.header_validator import HeaderValidator

logger = structlog.get_logger(__name__)

VERIFIED_MESSAGE = "The server key is verified. The server can use it to sign and decrypt content."


def generic_http_message(status: int) -> str:
    return f"There was a server error. No additional information provided ({status})"


def server_error_message(response: httpx.Response) -> str:
    """
    Extract the message of a structured error body.

    Falls back to a generic message carrying the status code when the body is
    not JSON or has no ``header.message``.
    """
    try:
        data = response.json()
    except ValueError:
        return generic_http_message(response.status_code)

    header = data.get("header") if isinstance(data, dict) else None
    message = header.get("message") if isinstance(header, dict) else None
    if isinstance(message, str) and message:
        return message
    return generic_http_message(response.status_code)


class AuthSession:
    """
    One GPGAuth handshake.

    A session owns its pending verify token and its stage. Stages only move
    forward; after a failure the session refuses further calls and a new one
    must be created. Run concurrent handshakes on separate sessions.

    Example:
        session = AuthSession(http, crypto, keyring, config)
        await session.verify()
        referrer = await session.login(passphrase)
    """

    def __init__(
        self,
        http_client: GpgAuthHttpClient,
        crypto: GpgAuthCrypto,
        keyring: Keyring,
        config: GpgAuthConfig,
        *,
        header_validator: HeaderValidator | None = None,
    ) -> None:
        """
        Args:
            http_client: Open HTTP client.
            crypto: Encrypt/decrypt collaborator.
            keyring: Private key collaborator.
            config: Client configuration.
            header_validator: Defaults to a validator built from the config.
        """
        self._http = http_client
        self._crypto = crypto
        self._keyring = keyring
        self._config = config
        self._headers = header_validator or HeaderValidator(
            prefix=config.header_prefix,
            protocol_version=config.protocol_version,
        )

        self._stage = SessionStage.IDLE
        self._verify_token: Token | None = None
        self._lock = asyncio.Lock()

    @property
    def stage(self) -> SessionStage:
        return self._stage

    @property
    def verify_token(self) -> Token | None:
        """Nonce sent during the last verify call."""
        return self._verify_token

    async def verify(
        self,
        server_url: str | None = None,
        server_public_key: str | None = None,
        user_fingerprint: str | None = None,
    ) -> str:
        """
        Verify the server can decrypt with the key we hold for it.

        Args:
            server_url: Server URL. Defaults to the configured base URL.
            server_public_key: Armored server key or keyring identifier. Defaults
                to the identifier derived from the server URL.
            user_fingerprint: User key fingerprint. Defaults to the keyring's key.

        Returns:
            Human readable confirmation.

        Raises:
            EncryptionFailure: If the nonce cannot be encrypted.
            ServerRejected: If the server refused the request.
            ProtocolError: If the response headers or token are malformed.
            ServerKeyUnverified: If the server echoed a different token.
            TransportError: If the request failed.
        """
        async with self._lock:
            self._advance(SessionStage.VERIFYING)
            with self._failing_closed():
                server_url, verify_url = self._verify_endpoint(server_url)
                if server_public_key is None:
                    server_public_key = self._crypto.derive_id(server_url)
                if user_fingerprint is None:
                    user_fingerprint = await self._user_fingerprint()

                logger.info("Verifying server key", server_url=server_url)
                token = Token.generate(self._config.token_format)
                self._verify_token = token
                encrypted = await self._encrypt(token.value, server_public_key)

                response = await verify(
                    self._http,
                    verify_url,
                    keyid=user_fingerprint,
                    server_verify_token=encrypted,
                )
                header_set = self._validate(AuthStage.VERIFY, response)

                echoed = Token.parse(header_set.verify_response, self._config.token_format)
                if not echoed.equals(token):
                    logger.warning("Server key verification failed", server_url=server_url)
                    raise ServerKeyUnverified()

                self._advance(SessionStage.VERIFIED)
                logger.info("Server key verified", server_url=server_url)
                return VERIFIED_MESSAGE

    async def login(self, passphrase: str) -> str:
        """
        Run the full login handshake.

        The passphrase is checked locally before any request is sent.

        Args:
            passphrase: Private key passphrase.

        Returns:
            Referrer URL to continue to.

        Raises:
            InvalidPassphrase: If the passphrase does not unlock the key.
            GpgAuthError: If any stage fails.
        """
        async with self._lock:
            self._advance(SessionStage.LOGGING_IN)
            with self._failing_closed():
                logger.info("Starting login")
                await asyncio.to_thread(self._keyring.check_passphrase, passphrase)
                user_auth_token = await self._stage1(passphrase)
                referrer = await self._stage2(user_auth_token)
                logger.info("Login complete")
                return referrer

    async def stage1(self, passphrase: str) -> str:
        """
        Get the user auth token from the server and decrypt it.

        Args:
            passphrase: Private key passphrase.

        Returns:
            Decrypted user auth token.

        Raises:
            ServerRejected: If the server refused the request.
            ProtocolError: If the headers or decrypted token are malformed.
            InvalidPassphrase: If the passphrase does not unlock the key.
            DecryptionFailure: If the token cannot be decrypted.
        """
        async with self._lock:
            with self._failing_closed():
                return await self._stage1(passphrase)

    async def stage2(self, user_auth_token: str) -> str:
        """
        Send the decrypted user auth token back to the server.

        Args:
            user_auth_token: Token returned by stage1.

        Returns:
            Referrer URL to continue to.

        Raises:
            ServerRejected: If the server refused the token.
            ProtocolError: If the completion headers are malformed.
        """
        async with self._lock:
            with self._failing_closed():
                return await self._stage2(user_auth_token)

    async def get_server_key(self, server_url: str | None = None) -> ServerKey:
        """
        Fetch the public key advertised by the server.

        Does not change the session stage.

        Args:
            server_url: Server URL. Defaults to the configured base URL.

        Returns:
            The server's key.

        Raises:
            ServerRejected: If the server refused the request.
            MalformedServerResponse: If the body cannot be understood.
        """
        self._require_usable()
        _, verify_url = self._verify_endpoint(server_url)
        response = await get_server_key(self._http, verify_url)
        if not response.is_success:
            self._raise_response_error(response)

        try:
            body = response.json()["body"]
            return ServerKey(fingerprint=body["fingerprint"], keydata=body["keydata"])
        except (ValueError, KeyError, TypeError) as e:
            msg = "There was a problem trying to understand the data provided by the server"
            raise MalformedServerResponse(msg, status=response.status_code) from e

    def _verify_endpoint(self, server_url: str | None) -> tuple[str, str]:
        if not server_url:
            return self._config.server_url, self._config.verify_url
        server_url = server_url.rstrip("/")
        return server_url, server_url + self._config.verify_path

    async def _stage1(self, passphrase: str) -> str:
        self._advance(SessionStage.STAGE1)
        fingerprint = await self._user_fingerprint()

        logger.debug("Login stage 1")
        response = await login_stage1(self._http, self._config.login_url, keyid=fingerprint)
        header_set = self._validate(AuthStage.STAGE1, response)

        plaintext = await self._decrypt(header_set.user_auth_token, passphrase)
        try:
            token = Token.parse(plaintext, self._config.token_format)
        except MalformedToken:
            logger.warning("Server issued a malformed user auth token")
            raise
        return token.value

    async def _stage2(self, user_auth_token: str) -> str:
        self._advance(SessionStage.STAGE2)
        fingerprint = await self._user_fingerprint()

        logger.debug("Login stage 2")
        response = await login_stage2(
            self._http,
            self._config.login_url,
            keyid=fingerprint,
            user_token_result=user_auth_token,
        )
        header_set = self._validate(AuthStage.COMPLETE, response)

        self._advance(SessionStage.COMPLETE)
        return self._config.server_url + header_set.refer

    def _validate(self, stage: AuthStage, response: httpx.Response) -> AuthHeaderSet:
        if not response.is_success:
            self._raise_response_error(response)

        header_set = self._headers.parse(stage, response.headers)
        if header_set.is_error:
            raise ServerRejected(header_set.error_message, status=response.status_code)
        return header_set

    @staticmethod
    def _raise_response_error(response: httpx.Response) -> None:
        message = server_error_message(response)
        logger.warning("Server rejected the request", status=response.status_code)
        raise ServerRejected(message, status=response.status_code)

    async def _user_fingerprint(self) -> str:
        private_key = await asyncio.to_thread(self._keyring.find_private_key)
        return private_key.fingerprint

    async def _encrypt(self, plaintext: str, recipient: str) -> str:
        try:
            return await asyncio.to_thread(self._crypto.encrypt, plaintext, recipient)
        except EncryptionFailure:
            raise
        except Exception as e:
            msg = "Unable to encrypt the verify token."
            raise EncryptionFailure(msg) from e

    async def _decrypt(self, ciphertext: str, passphrase: str) -> str:
        try:
            return await asyncio.to_thread(self._crypto.decrypt, ciphertext, passphrase)
        except (DecryptionFailure, InvalidPassphrase):
            raise
        except Exception as e:
            msg = "Unable to decrypt the user auth token."
            raise DecryptionFailure(msg) from e

    def _advance(self, stage: SessionStage) -> None:
        self._require_usable()
        if stage not in SESSION_TRANSITIONS[self._stage]:
            msg = f"Cannot move from {self._stage} to {stage}"
            raise SessionStateError(msg, stage=str(self._stage))
        self._stage = stage

    def _require_usable(self) -> None:
        if self._stage == SessionStage.FAILED:
            msg = "Session failed. Create a new session to retry."
            raise SessionStateError(msg, stage=str(self._stage))

    @contextmanager
    def _failing_closed(self) -> Iterator[None]:
        try:
            yield
        except SessionStateError:
            raise
        except BaseException as e:
            self._fail(e)
            raise

    def _fail(self, error: BaseException) -> None:
        if self._stage != SessionStage.FAILED:
            context: dict[str, Any] = {"stage": str(self._stage), "error_type": type(error).__name__}
            if isinstance(error, GpgAuthError):
                context["error"] = error.message
            logger.warning("Authentication failed", **context)
        self._stage = SessionStage.FAILED
