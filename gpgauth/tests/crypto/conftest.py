import pgpy
import pytest

from gpgauth.crypto.keyring import PgpyKeyring
from gpgauth.tests.utils.keys import create_test_key

USER_PASSPHRASE = "correct horse battery staple"
SERVER_DOMAIN = "https://passbolt.test"


@pytest.fixture(scope="session")
def user_key() -> pgpy.PGPKey:
    return create_test_key("Ada User", "ada@passbolt.test", passphrase=USER_PASSPHRASE)


@pytest.fixture(scope="session")
def server_key() -> pgpy.PGPKey:
    return create_test_key("Passbolt Server", "server@passbolt.test")


@pytest.fixture
def keyring(user_key: pgpy.PGPKey, server_key: pgpy.PGPKey) -> PgpyKeyring:
    keyring = PgpyKeyring()
    keyring.import_private_key(str(user_key))
    keyring.import_server_key(SERVER_DOMAIN, str(server_key.pubkey))
    return keyring
