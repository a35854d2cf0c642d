"""
Handshake services for GPGAuth.
"""

from gpgauth.services.auth_session import AuthSession
from gpgauth.services.header_validator import HeaderValidator

__all__ = [
    "AuthSession",
    "HeaderValidator",
]
