"""
In-memory keyring backed by pgpy.

Holds the user's private key and the public keys of trusted servers.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import pgpy
import structlog
from pgpy.errors import PGPDecryptionError

from gpgauth.crypto.identifiers import derive_id
from gpgauth.exceptions import CryptoError, InvalidPassphrase, KeyNotFoundError
from gpgauth.models.auth import PrivateKeyInfo

logger = structlog.get_logger(__name__)


def _fingerprint(key: pgpy.PGPKey) -> str:
    return str(key.fingerprint).replace(" ", "").upper()


def _key_id(key: pgpy.PGPKey) -> str:
    return str(key.fingerprint.keyid).upper()


def load_key(armored_key: str) -> pgpy.PGPKey:
    """
    Load a key from ASCII-armored format.

    Raises:
        CryptoError: If the key cannot be parsed.
    """
    try:
        key, _ = pgpy.PGPKey.from_blob(armored_key)
    except Exception as e:
        msg = f"Failed to load key: {e}"
        raise CryptoError(msg) from e
    return key


class PgpyKeyring:
    """
    Keyring implementation using pgpy.

    Example:
        keyring = PgpyKeyring()
        keyring.import_private_key(armored_private_key)
        keyring.import_server_key("https://passbolt.example.com", armored_server_key)
    """

    def __init__(self) -> None:
        self._private_key: pgpy.PGPKey | None = None
        self._public_keys: dict[str, pgpy.PGPKey] = {}

    def import_private_key(self, armored_key: str) -> PrivateKeyInfo:
        """
        Import the user's private key, replacing any previous one.

        Args:
            armored_key: ASCII-armored private key.

        Returns:
            Identifiers of the imported key.

        Raises:
            CryptoError: If the key cannot be parsed or is a public key.
        """
        key = load_key(armored_key)
        if key.is_public:
            msg = "Expected a private key, got a public key"
            raise CryptoError(msg)
        self._private_key = key
        logger.debug("Private key imported", fingerprint=_fingerprint(key))
        return self.find_private_key()

    def import_public_key(self, armored_key: str, *, key_id: str | None = None) -> str:
        """
        Import a public key.

        Args:
            armored_key: ASCII-armored key. The public half is kept for private keys.
            key_id: Identifier to store the key under. Defaults to its fingerprint.

        Returns:
            The identifier the key is stored under.
        """
        key = load_key(armored_key)
        if not key.is_public:
            key = key.pubkey
        identifier = key_id or _fingerprint(key)
        self._public_keys[identifier.lower()] = key
        logger.debug("Public key imported", key_id=identifier)
        return identifier

    def import_server_key(self, domain: str, armored_key: str) -> str:
        """Import a server's public key under the identifier derived from its domain."""
        return self.import_public_key(armored_key, key_id=derive_id(domain))

    def find_private_key(self) -> PrivateKeyInfo:
        key = self._require_private_key()
        return PrivateKeyInfo(fingerprint=_fingerprint(key), key_id=_key_id(key))

    def find_public_key(self, identifier: str) -> pgpy.PGPKey:
        """
        Look up a public key by storage identifier, fingerprint or key ID.

        Raises:
            KeyNotFoundError: If no key matches.
        """
        wanted = identifier.replace(" ", "").lower()
        key = self._public_keys.get(wanted)
        if key is not None:
            return key
        for candidate in self._public_keys.values():
            if wanted in (_fingerprint(candidate).lower(), _key_id(candidate).lower()):
                return candidate
        msg = "No public key found"
        raise KeyNotFoundError(msg, key_id=identifier)

    def check_passphrase(self, passphrase: str) -> None:
        with self.unlock(passphrase):
            pass

    @contextmanager
    def unlock(self, passphrase: str) -> Iterator[pgpy.PGPKey]:
        """
        Unlock the private key for the duration of the context.

        Raises:
            KeyNotFoundError: If no private key was imported.
            InvalidPassphrase: If the passphrase is incorrect.
        """
        key = self._require_private_key()
        try:
            with key.unlock(passphrase):
                yield key
        except PGPDecryptionError as e:
            raise InvalidPassphrase() from e

    def _require_private_key(self) -> pgpy.PGPKey:
        if self._private_key is None:
            msg = "No private key in the keyring"
            raise KeyNotFoundError(msg)
        return self._private_key
