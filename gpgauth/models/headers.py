"""
Protocol header domain models.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum


class AuthStage(StrEnum):
    """Handshake stages, each with a fixed set of protocol headers."""

    VERIFY = "verify"
    STAGE0 = "stage0"
    STAGE1 = "stage1"
    COMPLETE = "complete"
    ERROR = "error"


class HeaderField(StrEnum):
    """Protocol header names, without the protocol prefix."""

    VERSION = "version"
    AUTHENTICATED = "authenticated"
    PROGRESS = "progress"
    VERIFY_RESPONSE = "verify-response"
    USER_AUTH_TOKEN = "user-auth-token"
    REFER = "refer"
    ERROR = "error"
    DEBUG = "debug"


@dataclass(frozen=True, kw_only=True)
class AuthHeaderSet:
    """
    Validated protocol headers of one response.

    Attributes:
        stage: Stage the headers were validated for. ERROR when the server
            signalled an error instead.
        headers: Protocol headers, keyed by lower-cased full header name.
        values: Decoded stage fields, ready for the caller.
        error_message: Server supplied message when stage is ERROR.
    """

    stage: AuthStage
    headers: Mapping[str, str] = field(default_factory=dict)
    values: Mapping[HeaderField, str] = field(default_factory=dict)
    error_message: str | None = None

    @property
    def is_error(self) -> bool:
        return self.stage == AuthStage.ERROR

    @property
    def verify_response(self) -> str | None:
        return self.values.get(HeaderField.VERIFY_RESPONSE)

    @property
    def user_auth_token(self) -> str | None:
        """Encrypted user auth token with transport escaping reversed."""
        return self.values.get(HeaderField.USER_AUTH_TOKEN)

    @property
    def refer(self) -> str | None:
        return self.values.get(HeaderField.REFER)
