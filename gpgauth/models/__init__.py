"""
Domain models for GPGAuth.

These are immutable (frozen) dataclasses representing the core domain concepts.
"""

from gpgauth.models.auth import PrivateKeyInfo, ServerKey, SessionStage
from gpgauth.models.headers import AuthHeaderSet, AuthStage, HeaderField
from gpgauth.models.token import DEFAULT_TOKEN_FORMAT, GPGAUTH_V1_3_0, Token, TokenFormat

__all__ = [
    # Auth
    "SessionStage",
    "ServerKey",
    "PrivateKeyInfo",
    # Headers
    "AuthStage",
    "HeaderField",
    "AuthHeaderSet",
    # Token
    "Token",
    "TokenFormat",
    "DEFAULT_TOKEN_FORMAT",
    "GPGAUTH_V1_3_0",
]
