"""
Offline GPGAuth server for end-to-end handshake tests.
"""

import json
from collections.abc import AsyncIterator
from urllib.parse import quote_plus, urlsplit

import httpx
import pgpy
import pytest
import pytest_asyncio

from gpgauth.client import GpgAuthClient
from gpgauth.config import GpgAuthConfig
from gpgauth.crypto.keyring import PgpyKeyring
from gpgauth.crypto.pgpy_backend import PgpyCrypto
from gpgauth.models.token import Token, TokenFormat
from gpgauth.tests.utils.keys import addslashes, create_test_key
from gpgauth.tests.utils.mock_transport import read_form

BASE_URL = "https://passbolt.test"
USER_PASSPHRASE = "correct horse battery staple"
SESSION_COOKIE = "passbolt_session"

KEYID_FIELD = "data[gpg_auth][keyid]"
SERVER_VERIFY_TOKEN_FIELD = "data[gpg_auth][server_verify_token]"
USER_TOKEN_RESULT_FIELD = "data[gpg_auth][user_token_result]"


def _error(status: int, message: str) -> httpx.Response:
    body = {"header": {"status": "error", "message": message}, "body": None}
    return httpx.Response(status, content=json.dumps(body).encode())


class FakeGpgAuthServer(httpx.AsyncBaseTransport):
    """
    Plays the server side of the handshake with a real OpenPGP key.

    Set ``tamper_verify`` to echo a different nonce, or ``tamper_user_token``
    to issue a token that does not match the grammar.
    """

    def __init__(
        self,
        server_key: pgpy.PGPKey,
        user_key: pgpy.PGPKey,
        token_format: TokenFormat,
    ) -> None:
        self.server_key = server_key
        self.user_key = user_key
        self.token_format = token_format
        self.tamper_verify = False
        self.tamper_user_token = False
        self.issued_tokens: list[str] = []
        self.requests: list[httpx.Request] = []

    @property
    def user_fingerprint(self) -> str:
        return str(self.user_key.fingerprint).replace(" ", "").upper()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = urlsplit(str(request.url)).path
        if path == "/auth/verify.json" and request.method == "GET":
            return self._server_key()
        if path == "/auth/verify.json" and request.method == "POST":
            return self._verify(read_form(request))
        if path == "/auth/login.json" and request.method == "POST":
            form = read_form(request)
            if form.get(KEYID_FIELD) != self.user_fingerprint:
                return _error(404, "There is no user associated with this key.")
            if USER_TOKEN_RESULT_FIELD in form:
                return self._complete(form[USER_TOKEN_RESULT_FIELD])
            return self._stage1()
        return _error(404, "Not found")

    def _server_key(self) -> httpx.Response:
        body = {
            "header": {"status": "success", "message": "The operation was successful."},
            "body": {
                "fingerprint": str(self.server_key.fingerprint),
                "keydata": str(self.server_key.pubkey),
            },
        }
        return httpx.Response(200, content=json.dumps(body).encode())

    def _verify(self, form: dict[str, str]) -> httpx.Response:
        message = pgpy.PGPMessage.from_blob(form[SERVER_VERIFY_TOKEN_FIELD])
        nonce = self.server_key.decrypt(message).message
        if self.tamper_verify:
            nonce = Token.generate(self.token_format).value
        return httpx.Response(
            200,
            headers={
                "X-GPGAuth-Authenticated": "false",
                "X-GPGAuth-Progress": "stage0",
                "X-GPGAuth-Verify-Response": nonce,
            },
        )

    def _stage1(self) -> httpx.Response:
        token = Token.generate(self.token_format).value
        if self.tamper_user_token:
            token = "gpgauth:not-a-valid-token:gpgauth"
        self.issued_tokens.append(token)
        encrypted = str(self.user_key.pubkey.encrypt(pgpy.PGPMessage.new(token)))
        return httpx.Response(
            200,
            headers={
                "X-GPGAuth-Authenticated": "false",
                "X-GPGAuth-Progress": "stage1",
                "X-GPGAuth-User-Auth-Token": quote_plus(addslashes(encrypted)),
            },
        )

    def _complete(self, user_token_result: str) -> httpx.Response:
        if not self.issued_tokens or user_token_result != self.issued_tokens[-1]:
            return _error(403, "The user token result is invalid.")
        return httpx.Response(
            200,
            headers={
                "X-GPGAuth-Authenticated": "true",
                "X-GPGAuth-Progress": "complete",
                "X-GPGAuth-Refer": "/",
                "Set-Cookie": f"{SESSION_COOKIE}=authenticated; Path=/",
            },
        )


@pytest.fixture(scope="session")
def user_key() -> pgpy.PGPKey:
    return create_test_key("Ada User", "ada@passbolt.test", passphrase=USER_PASSPHRASE)


@pytest.fixture(scope="session")
def server_key() -> pgpy.PGPKey:
    return create_test_key("Passbolt Server", "server@passbolt.test")


@pytest.fixture
def config() -> GpgAuthConfig:
    return GpgAuthConfig(base_url=BASE_URL)


@pytest.fixture
def fake_server(
    server_key: pgpy.PGPKey, user_key: pgpy.PGPKey, config: GpgAuthConfig
) -> FakeGpgAuthServer:
    return FakeGpgAuthServer(server_key, user_key, config.token_format)


@pytest.fixture
def keyring(user_key: pgpy.PGPKey, server_key: pgpy.PGPKey) -> PgpyKeyring:
    keyring = PgpyKeyring()
    keyring.import_private_key(str(user_key))
    keyring.import_server_key(BASE_URL, str(server_key.pubkey))
    return keyring


@pytest_asyncio.fixture
async def client(
    config: GpgAuthConfig, keyring: PgpyKeyring, fake_server: FakeGpgAuthServer
) -> AsyncIterator[GpgAuthClient]:
    async with GpgAuthClient(
        config, crypto=PgpyCrypto(keyring), keyring=keyring, transport=fake_server
    ) as client:
        yield client
