from collections.abc import AsyncIterator
from unittest.mock import Mock

import pytest
import pytest_asyncio

from gpgauth.api.http_client import GpgAuthHttpClient
from gpgauth.config import GpgAuthConfig
from gpgauth.models.auth import PrivateKeyInfo
from gpgauth.services.auth_session import AuthSession
from gpgauth.tests.utils.mock_transport import MockTransport

BASE_URL = "https://passbolt.test"
USER_FINGERPRINT = "03F60E958F4CB29723ACDF761353B5B15D9B054F"
SERVER_KEY_ID = "c7a6b3e1-2f4d-3a8b-a9c1-0d2e3f4a5b6c"


@pytest.fixture
def config() -> GpgAuthConfig:
    return GpgAuthConfig(base_url=BASE_URL)


@pytest.fixture
def mock_transport() -> MockTransport:
    return MockTransport()


@pytest_asyncio.fixture
async def http_client(
    config: GpgAuthConfig, mock_transport: MockTransport
) -> AsyncIterator[GpgAuthHttpClient]:
    async with GpgAuthHttpClient(config, transport=mock_transport) as client:
        yield client


@pytest.fixture
def mock_crypto() -> Mock:
    crypto = Mock()
    crypto.derive_id.return_value = SERVER_KEY_ID
    crypto.encrypt.side_effect = lambda plaintext, recipient: f"ENC[{recipient}]{plaintext}"
    crypto.decrypt.side_effect = lambda ciphertext, passphrase: ciphertext.removeprefix("ENC:")
    return crypto


@pytest.fixture
def mock_keyring() -> Mock:
    keyring = Mock()
    keyring.find_private_key.return_value = PrivateKeyInfo(
        fingerprint=USER_FINGERPRINT, key_id=USER_FINGERPRINT[-16:]
    )
    keyring.check_passphrase.return_value = None
    return keyring


@pytest.fixture
def session(
    http_client: GpgAuthHttpClient,
    mock_crypto: Mock,
    mock_keyring: Mock,
    config: GpgAuthConfig,
) -> AuthSession:
    return AuthSession(http_client, mock_crypto, mock_keyring, config)
