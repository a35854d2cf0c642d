"""
GPGAuth token model.

A token is a single-use nonce framed by literal delimiters. The client
generates one for the verify challenge, and the server issues one during
login stage 1.
"""

import hmac
import re
import secrets
import string
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Self

from gpgauth.exceptions import MalformedToken

_ALPHANUMERIC = string.ascii_letters + string.digits


def _random_alphanumeric(length: int) -> str:
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def _random_uuid4() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, kw_only=True)
class TokenFormat:
    """
    Grammar of a token: ``prefix + payload + suffix``.

    These are protocol constants shared by client and server.

    Attributes:
        name: Human readable name of the format.
        prefix: Literal opening delimiter.
        suffix: Literal closing delimiter.
        payload_pattern: Regular expression the payload must fully match.
        payload_factory: Returns a fresh random payload matching the pattern.
    """

    name: str
    prefix: str
    suffix: str
    payload_pattern: str
    payload_factory: Callable[[], str] = field(repr=False, compare=False)

    @cached_property
    def regex(self) -> re.Pattern[str]:
        return re.compile(
            re.escape(self.prefix) + f"(?:{self.payload_pattern})" + re.escape(self.suffix)
        )

    def matches(self, value: str) -> bool:
        return self.regex.fullmatch(value) is not None

    def build(self, payload: str) -> str:
        return f"{self.prefix}{payload}{self.suffix}"


DEFAULT_TOKEN_FORMAT = TokenFormat(
    name="gpgauth",
    prefix="gpgauth:",
    suffix=":gpgauth",
    payload_pattern="[A-Za-z0-9]{36}",
    payload_factory=lambda: _random_alphanumeric(36),
)

# Token layout of gpgauth 1.3.0 servers: version|length|uuid4|version
GPGAUTH_V1_3_0 = TokenFormat(
    name="gpgauth-1.3.0",
    prefix="gpgauthv1.3.0|36|",
    suffix="|gpgauthv1.3.0",
    payload_pattern="[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}",
    payload_factory=_random_uuid4,
)


@dataclass(frozen=True, eq=False)
class Token:
    """
    A validated protocol token.

    Instances are only obtained through ``generate`` or ``parse``, so a token
    always matches its grammar.

    Attributes:
        value: Token string matching the grammar.
        raw: The string the token was parsed from, None for generated tokens.
    """

    value: str = field(repr=False)
    raw: str | None = field(default=None, repr=False)

    @classmethod
    def generate(cls, token_format: TokenFormat = DEFAULT_TOKEN_FORMAT) -> Self:
        """
        Create a token with a cryptographically random payload.

        Args:
            token_format: Grammar of the token.

        Returns:
            A fresh token.
        """
        return cls(token_format.build(token_format.payload_factory()))

    @classmethod
    def parse(cls, raw: Any, token_format: TokenFormat = DEFAULT_TOKEN_FORMAT) -> Self:
        """
        Parse a token string.

        No trimming is applied: surrounding whitespace makes the input malformed.

        Args:
            raw: Candidate token string.
            token_format: Grammar the string must match.

        Returns:
            The parsed token.

        Raises:
            MalformedToken: If raw does not match the grammar exactly.
        """
        if not isinstance(raw, str):
            msg = "The token is not a string"
            raise MalformedToken(msg, token_format=token_format.name)
        if not token_format.matches(raw):
            msg = "The token is not in the right format"
            raise MalformedToken(msg, token_format=token_format.name, length=len(raw))
        return cls(raw, raw=raw)

    def equals(self, other: "Token") -> bool:
        """Constant-time comparison of token values."""
        return hmac.compare_digest(self.value.encode("utf-8"), other.value.encode("utf-8"))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        return hash(self.value)

    def __str__(self) -> str:
        return self.value
