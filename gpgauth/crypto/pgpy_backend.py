"""
Crypto implementation using pgpy library.

This is the current implementation that can be swapped out later
if we need to move to python-gnupg or a different library.
"""

import pgpy

from gpgauth.crypto.identifiers import derive_id
from gpgauth.crypto.keyring import PgpyKeyring, load_key
from gpgauth.exceptions import (
    DecryptionFailure,
    EncryptionFailure,
    InvalidPassphrase,
    KeyringError,
)

_ARMORED_PUBLIC_KEY = "-----BEGIN PGP PUBLIC KEY BLOCK-----"


class PgpyCrypto:
    """
    GpgAuthCrypto implementation using pgpy.

    Example:
        crypto = PgpyCrypto(keyring)
        encrypted = crypto.encrypt("hello", crypto.derive_id(server_url))
        decrypted = crypto.decrypt(encrypted_for_user, passphrase)
    """

    def __init__(self, keyring: PgpyKeyring) -> None:
        """
        Args:
            keyring: Source of the user's private key and of server public keys.
        """
        self._keyring = keyring

    def encrypt(self, plaintext: str, recipient: str) -> str:
        """
        Encrypt a message to a public key.

        Args:
            plaintext: Message to encrypt.
            recipient: ASCII-armored public key, or identifier of a keyring public key.

        Returns:
            ASCII-armored encrypted message.

        Raises:
            EncryptionFailure: If the key is unknown or encryption fails.
        """
        try:
            key = self._resolve_recipient(recipient)
            message = pgpy.PGPMessage.new(plaintext)
            return str(key.encrypt(message))
        except KeyringError as e:
            msg = f"Unable to find the recipient key: {e.message}"
            raise EncryptionFailure(msg) from e
        except Exception as e:
            msg = f"Encryption failed: {e}"
            raise EncryptionFailure(msg) from e

    def decrypt(self, ciphertext: str, passphrase: str) -> str:
        """
        Decrypt a message with the keyring's private key.

        Args:
            ciphertext: ASCII-armored encrypted message.
            passphrase: Private key passphrase.

        Returns:
            Decrypted message.

        Raises:
            InvalidPassphrase: If the passphrase is incorrect.
            DecryptionFailure: If the message cannot be decrypted.
        """
        try:
            message = pgpy.PGPMessage.from_blob(ciphertext)
        except Exception as e:
            msg = f"Failed to read encrypted message: {e}"
            raise DecryptionFailure(msg) from e

        try:
            with self._keyring.unlock(passphrase) as key:
                decrypted = key.decrypt(message)
        except InvalidPassphrase:
            raise
        except KeyringError as e:
            msg = f"Unable to use the private key: {e.message}"
            raise DecryptionFailure(msg) from e
        except Exception as e:
            msg = f"Decryption failed: {e}"
            raise DecryptionFailure(msg) from e

        return self._normalize_decrypted_content(decrypted.message)

    @staticmethod
    def derive_id(domain: str) -> str:
        return derive_id(domain)

    def _resolve_recipient(self, recipient: str) -> pgpy.PGPKey:
        if recipient.lstrip().startswith(_ARMORED_PUBLIC_KEY):
            key = load_key(recipient)
            return key if key.is_public else key.pubkey
        return self._keyring.find_public_key(recipient)

    @staticmethod
    def _normalize_decrypted_content(content: bytes | str | bytearray) -> str:
        if isinstance(content, (bytes, bytearray)):
            return bytes(content).decode("utf-8")
        return content
