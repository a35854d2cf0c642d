"""
Authentication-related domain models.
"""

from dataclasses import dataclass
from enum import StrEnum


class SessionStage(StrEnum):
    """Lifecycle of an AuthSession. Transitions only move forward."""

    IDLE = "idle"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    LOGGING_IN = "logging_in"
    STAGE1 = "stage1"
    STAGE2 = "stage2"
    COMPLETE = "complete"
    FAILED = "failed"


SESSION_TRANSITIONS: dict[SessionStage, frozenset[SessionStage]] = {
    SessionStage.IDLE: frozenset(
        {
            SessionStage.VERIFYING,
            SessionStage.LOGGING_IN,
            SessionStage.STAGE1,
            SessionStage.STAGE2,
        }
    ),
    SessionStage.VERIFYING: frozenset({SessionStage.VERIFIED, SessionStage.FAILED}),
    SessionStage.VERIFIED: frozenset({SessionStage.LOGGING_IN, SessionStage.STAGE1}),
    SessionStage.LOGGING_IN: frozenset({SessionStage.STAGE1, SessionStage.FAILED}),
    SessionStage.STAGE1: frozenset({SessionStage.STAGE2, SessionStage.FAILED}),
    SessionStage.STAGE2: frozenset({SessionStage.COMPLETE, SessionStage.FAILED}),
    SessionStage.COMPLETE: frozenset(),
    SessionStage.FAILED: frozenset(),
}


@dataclass(frozen=True, kw_only=True)
class ServerKey:
    """
    Public key advertised by the server.

    Attributes:
        fingerprint: Key fingerprint.
        keydata: ASCII-armored public key.
    """

    fingerprint: str
    keydata: str


@dataclass(frozen=True, kw_only=True)
class PrivateKeyInfo:
    """
    Public identifiers of the user's private key.

    Attributes:
        fingerprint: Upper-case hex fingerprint, without spaces.
        key_id: Upper-case hex key ID.
    """

    fingerprint: str
    key_id: str
