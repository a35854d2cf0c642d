"""
GPGAuth exception hierarchy.

All exceptions inherit from GpgAuthError for easy catching.
"""

from typing import Any


class GpgAuthError(Exception):
    """Base exception for all gpgauth errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class TransportError(GpgAuthError):
    """Network-level error (connection failed, timeout)."""


class ServerRejected(GpgAuthError):
    """The server refused the request. The message is meant for the user."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ProtocolError(GpgAuthError):
    """The server response does not follow the protocol."""


class ProtocolHeaderError(ProtocolError):
    """A protocol header is missing, unexpected or carries a wrong value."""

    def __init__(self, message: str, *, stage: str, name: str, **context: Any) -> None:
        super().__init__(message, stage=stage, name=name, **context)
        self.stage = stage
        self.name = name


class MissingProtocolHeader(ProtocolHeaderError):
    """A header required by the current stage is absent."""

    def __init__(self, stage: str, name: str) -> None:
        super().__init__(f"Missing protocol header {name}", stage=stage, name=name)


class UnexpectedProtocolHeader(ProtocolHeaderError):
    """A header that must not be sent at the current stage is present."""

    def __init__(self, stage: str, name: str) -> None:
        super().__init__(f"Unexpected protocol header {name}", stage=stage, name=name)


class InvalidProtocolHeader(ProtocolHeaderError):
    """A header is present but its value is not the one the stage expects."""

    def __init__(self, stage: str, name: str, value: str) -> None:
        super().__init__(
            f"Invalid value for protocol header {name}", stage=stage, name=name, value=value
        )
        self.value = value


class MalformedToken(ProtocolError):
    """A token does not match the token grammar."""


class MalformedServerResponse(ProtocolError):
    """A response body could not be understood."""


class ServerKeyUnverified(GpgAuthError):
    """The server could not prove it holds the advertised key."""

    def __init__(
        self,
        message: str = "The server was unable to prove it can use the advertised OpenPGP key.",
    ) -> None:
        super().__init__(message)


class KeyringError(GpgAuthError):
    """Keyring lookup or unlock failed."""


class InvalidPassphrase(KeyringError):
    """The passphrase does not unlock the private key."""

    def __init__(self, message: str = "The passphrase is invalid.") -> None:
        super().__init__(message)


class KeyNotFoundError(KeyringError):
    """No key matches the requested identifier."""


class CryptoError(GpgAuthError):
    """Cryptographic operation failed."""


class EncryptionFailure(CryptoError):
    """Encrypting a payload failed."""


class DecryptionFailure(CryptoError):
    """Decrypting a payload failed."""


class SessionStateError(GpgAuthError):
    """The session cannot perform the requested operation in its current stage."""

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message, stage=stage)
        self.stage = stage
