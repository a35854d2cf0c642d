"""
GPGAuth Python Client.

An async client for the GPGAuth challenge-response protocol: it proves that the
server and the user each hold the private half of a known OpenPGP key, without
sending a password or private key over the wire.

Example:
    ```python
    from gpgauth import GpgAuthClient, GpgAuthConfig, PgpyCrypto, PgpyKeyring

    keyring = PgpyKeyring()
    keyring.import_private_key(armored_private_key)
    keyring.import_server_key("https://passbolt.example.com", armored_server_key)

    config = GpgAuthConfig(base_url="https://passbolt.example.com")
    async with GpgAuthClient(config, crypto=PgpyCrypto(keyring), keyring=keyring) as client:
        print(await client.verify())
        referrer = await client.login("passphrase")
    ```
"""

from gpgauth.client import GpgAuthClient
from gpgauth.config import GpgAuthConfig
from gpgauth.crypto.keyring import PgpyKeyring
from gpgauth.crypto.pgpy_backend import PgpyCrypto
from gpgauth.exceptions import (
    CryptoError,
    DecryptionFailure,
    EncryptionFailure,
    GpgAuthError,
    InvalidPassphrase,
    InvalidProtocolHeader,
    KeyNotFoundError,
    KeyringError,
    MalformedServerResponse,
    MalformedToken,
    MissingProtocolHeader,
    ProtocolError,
    ProtocolHeaderError,
    ServerKeyUnverified,
    ServerRejected,
    SessionStateError,
    TransportError,
    UnexpectedProtocolHeader,
)
from gpgauth.models.headers import AuthStage
from gpgauth.models.token import DEFAULT_TOKEN_FORMAT, GPGAUTH_V1_3_0, Token, TokenFormat
from gpgauth.services.auth_session import AuthSession
from gpgauth.services.header_validator import HeaderValidator

__version__ = "0.1.0"

__all__ = [
    # Main client
    "GpgAuthClient",
    "GpgAuthConfig",
    "AuthSession",
    "HeaderValidator",
    # Crypto
    "PgpyCrypto",
    "PgpyKeyring",
    # Models
    "AuthStage",
    "Token",
    "TokenFormat",
    "DEFAULT_TOKEN_FORMAT",
    "GPGAUTH_V1_3_0",
    # Exceptions
    "GpgAuthError",
    "TransportError",
    "ServerRejected",
    "ProtocolError",
    "ProtocolHeaderError",
    "MissingProtocolHeader",
    "UnexpectedProtocolHeader",
    "InvalidProtocolHeader",
    "MalformedToken",
    "MalformedServerResponse",
    "ServerKeyUnverified",
    "KeyringError",
    "InvalidPassphrase",
    "KeyNotFoundError",
    "CryptoError",
    "EncryptionFailure",
    "DecryptionFailure",
    "SessionStateError",
]
