"""
Crypto and keyring collaborator protocols.

These define the interface the authentication session depends on, allowing
different implementations (pgpy, python-gnupg, test doubles) to be swapped
without changing the handshake code.
"""

from typing import Protocol, runtime_checkable

from gpgauth.models.auth import PrivateKeyInfo


@runtime_checkable
class GpgAuthCrypto(Protocol):
    """Abstract interface for the OpenPGP operations of the handshake."""

    def encrypt(self, plaintext: str, recipient: str) -> str:
        """
        Encrypt a message to a public key.

        Args:
            plaintext: Message to encrypt.
            recipient: ASCII-armored public key, or an identifier known to the keyring.

        Returns:
            ASCII-armored encrypted message.

        Raises:
            EncryptionFailure: If the message cannot be encrypted.
        """
        ...

    def decrypt(self, ciphertext: str, passphrase: str) -> str:
        """
        Decrypt a message with the user's private key.

        Args:
            ciphertext: ASCII-armored encrypted message.
            passphrase: Private key passphrase.

        Returns:
            Decrypted message.

        Raises:
            InvalidPassphrase: If the passphrase does not unlock the key.
            DecryptionFailure: If decryption fails.
        """
        ...

    def derive_id(self, domain: str) -> str:
        """
        Derive the identifier under which a server's key is stored.

        Args:
            domain: Server URL.

        Returns:
            Deterministic identifier for the domain.
        """
        ...


@runtime_checkable
class Keyring(Protocol):
    """Access to the user's private key."""

    def find_private_key(self) -> PrivateKeyInfo:
        """
        Get the user's private key identifiers.

        Raises:
            KeyNotFoundError: If no private key is available.
        """
        ...

    def check_passphrase(self, passphrase: str) -> None:
        """
        Check that a passphrase unlocks the private key.

        Raises:
            InvalidPassphrase: If it does not.
        """
        ...
