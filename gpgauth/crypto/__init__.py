"""
Cryptographic collaborators for GPGAuth.

This module provides:
- The crypto and keyring protocols the handshake depends on
- pgpy-backed implementations of both
- Deterministic server key identifiers
"""

from gpgauth.crypto.identifiers import derive_id
from gpgauth.crypto.keyring import PgpyKeyring
from gpgauth.crypto.pgpy_backend import PgpyCrypto
from gpgauth.crypto.protocol import GpgAuthCrypto, Keyring

__all__ = [
    "GpgAuthCrypto",
    "Keyring",
    "PgpyCrypto",
    "PgpyKeyring",
    "derive_id",
]
