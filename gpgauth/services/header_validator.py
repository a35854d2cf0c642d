"""
Protocol header validation.

Every handshake response carries its results in prefixed headers. Each stage
has an exact set of headers that must be present, a set that must be absent,
and fixed values for the progress markers.
"""

import re
from collections.abc import Mapping
from urllib.parse import unquote_plus

import structlog

from gpgauth.exceptions import (
    InvalidProtocolHeader,
    MissingProtocolHeader,
    UnexpectedProtocolHeader,
)
from gpgauth.models.headers import AuthHeaderSet, AuthStage, HeaderField

logger = structlog.get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "The server reported an authentication error without details."

_REQUIRED_FIELDS: dict[AuthStage, frozenset[HeaderField]] = {
    AuthStage.VERIFY: frozenset(
        {HeaderField.AUTHENTICATED, HeaderField.PROGRESS, HeaderField.VERIFY_RESPONSE}
    ),
    AuthStage.STAGE0: frozenset(
        {HeaderField.AUTHENTICATED, HeaderField.PROGRESS, HeaderField.VERIFY_RESPONSE}
    ),
    AuthStage.STAGE1: frozenset(
        {HeaderField.AUTHENTICATED, HeaderField.PROGRESS, HeaderField.USER_AUTH_TOKEN}
    ),
    AuthStage.COMPLETE: frozenset(
        {HeaderField.AUTHENTICATED, HeaderField.PROGRESS, HeaderField.REFER}
    ),
    AuthStage.ERROR: frozenset({HeaderField.ERROR}),
}

_STAGE_VALUE_FIELDS = frozenset(
    {HeaderField.VERIFY_RESPONSE, HeaderField.USER_AUTH_TOKEN, HeaderField.REFER}
)

# A stage must not carry the value header of any other stage.
_FORBIDDEN_FIELDS: dict[AuthStage, frozenset[HeaderField]] = {
    AuthStage.VERIFY: _STAGE_VALUE_FIELDS - {HeaderField.VERIFY_RESPONSE},
    AuthStage.STAGE0: _STAGE_VALUE_FIELDS - {HeaderField.VERIFY_RESPONSE},
    AuthStage.STAGE1: _STAGE_VALUE_FIELDS - {HeaderField.USER_AUTH_TOKEN},
    AuthStage.COMPLETE: _STAGE_VALUE_FIELDS - {HeaderField.REFER},
    AuthStage.ERROR: frozenset(),
}

_EXPECTED_VALUES: dict[AuthStage, dict[HeaderField, str]] = {
    AuthStage.VERIFY: {HeaderField.AUTHENTICATED: "false", HeaderField.PROGRESS: "stage0"},
    AuthStage.STAGE0: {HeaderField.AUTHENTICATED: "false", HeaderField.PROGRESS: "stage0"},
    AuthStage.STAGE1: {HeaderField.AUTHENTICATED: "false", HeaderField.PROGRESS: "stage1"},
    AuthStage.COMPLETE: {HeaderField.AUTHENTICATED: "true", HeaderField.PROGRESS: "complete"},
    AuthStage.ERROR: {},
}

_EXTRACTED_FIELDS: dict[AuthStage, tuple[HeaderField, ...]] = {
    AuthStage.VERIFY: (HeaderField.VERIFY_RESPONSE,),
    AuthStage.STAGE0: (HeaderField.VERIFY_RESPONSE,),
    AuthStage.STAGE1: (HeaderField.USER_AUTH_TOKEN,),
    AuthStage.COMPLETE: (HeaderField.REFER,),
    AuthStage.ERROR: (HeaderField.ERROR,),
}

_SLASHED = re.compile(r"\\(.?)", re.DOTALL)


def _strip_slash(match: re.Match[str]) -> str:
    escaped = match.group(1)
    if escaped == "0":
        return "\x00"
    return escaped


def stripslashes(value: str) -> str:
    """Reverse PHP ``addslashes``: ``\\x`` becomes ``x`` and ``\\0`` becomes NUL."""
    return _SLASHED.sub(_strip_slash, value)


def unescape_header_value(value: str) -> str:
    """
    Reverse the escaping servers apply to binary-safe tokens in headers.

    The server backslash-escapes then URL-encodes the armored token, so the
    client URL-decodes first and strips slashes second.
    """
    return stripslashes(unquote_plus(value))


class HeaderValidator:
    """
    Validates the protocol headers of a response for a given stage.

    Example:
        validator = HeaderValidator()
        header_set = validator.parse(AuthStage.STAGE1, response.headers)
        encrypted = header_set.user_auth_token
    """

    def __init__(self, prefix: str = "X-GPGAuth-", protocol_version: str | None = None) -> None:
        """
        Args:
            prefix: Prefix shared by all protocol headers.
            protocol_version: When set, the version header is required and pinned.
        """
        self._prefix = prefix.lower()
        self._protocol_version = protocol_version

    def header_name(self, header_field: HeaderField) -> str:
        """Full lower-cased header name of a protocol field."""
        return f"{self._prefix}{header_field}"

    def required_headers(self, stage: AuthStage) -> frozenset[str]:
        """
        Get the headers a response must carry at a stage.

        Args:
            stage: Handshake stage.

        Returns:
            Lower-cased header names.
        """
        fields = set(_REQUIRED_FIELDS[AuthStage(stage)])
        if self._protocol_version is not None and stage != AuthStage.ERROR:
            fields.add(HeaderField.VERSION)
        return frozenset(self.header_name(f) for f in fields)

    def forbidden_headers(self, stage: AuthStage) -> frozenset[str]:
        """Headers a response must not carry at a stage."""
        return frozenset(self.header_name(f) for f in _FORBIDDEN_FIELDS[AuthStage(stage)])

    def parse(self, stage: AuthStage, raw_headers: Mapping[str, str]) -> AuthHeaderSet:
        """
        Validate response headers for a stage and extract its fields.

        If the server signalled an error, an ERROR header set carrying the
        server message is returned whatever the requested stage.

        Args:
            stage: Expected handshake stage.
            raw_headers: Response headers, any name casing.

        Returns:
            Header set with decoded stage values.

        Raises:
            MissingProtocolHeader: If a required header is absent.
            UnexpectedProtocolHeader: If a forbidden header is present.
            InvalidProtocolHeader: If a marker header has the wrong value.
        """
        stage = AuthStage(stage)
        headers = self._normalize(raw_headers)

        error_flag = headers.get(self.header_name(HeaderField.ERROR))
        if error_flag is not None and error_flag.strip().lower() != "false":
            return self._error_set(headers)
        if stage == AuthStage.ERROR:
            raise MissingProtocolHeader(stage, self.header_name(HeaderField.ERROR))

        for name in sorted(self.required_headers(stage)):
            if name not in headers:
                raise MissingProtocolHeader(stage, name)

        for name in sorted(self.forbidden_headers(stage)):
            if name in headers:
                raise UnexpectedProtocolHeader(stage, name)

        self._check_values(stage, headers)

        values = {f: headers[self.header_name(f)] for f in _EXTRACTED_FIELDS[stage]}
        if HeaderField.USER_AUTH_TOKEN in values:
            values[HeaderField.USER_AUTH_TOKEN] = unescape_header_value(
                values[HeaderField.USER_AUTH_TOKEN]
            )

        logger.debug("Protocol headers validated", stage=str(stage))
        return AuthHeaderSet(stage=stage, headers=headers, values=values)

    def _normalize(self, raw_headers: Mapping[str, str]) -> dict[str, str]:
        return {
            name.lower(): value
            for name, value in raw_headers.items()
            if name.lower().startswith(self._prefix)
        }

    def _check_values(self, stage: AuthStage, headers: dict[str, str]) -> None:
        expected = dict(_EXPECTED_VALUES[stage])
        if self._protocol_version is not None:
            expected[HeaderField.VERSION] = self._protocol_version

        for header_field, expected_value in expected.items():
            name = self.header_name(header_field)
            value = headers[name]
            if value.strip().lower() != expected_value.lower():
                raise InvalidProtocolHeader(stage, name, value)

    def _error_set(self, headers: dict[str, str]) -> AuthHeaderSet:
        message = headers.get(self.header_name(HeaderField.DEBUG), "").strip()
        logger.debug("Server signalled a protocol error")
        return AuthHeaderSet(
            stage=AuthStage.ERROR,
            headers=headers,
            values={HeaderField.ERROR: headers[self.header_name(HeaderField.ERROR)]},
            error_message=message or DEFAULT_ERROR_MESSAGE,
        )
