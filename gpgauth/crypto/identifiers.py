"""Deterministic identifiers for server keys."""

import hashlib


def derive_id(domain: str) -> str:
    """
    Derive a UUID-shaped identifier from a domain.

    The first 32 hex digits of the SHA-1 of the domain are laid out as a UUID,
    with the version digit forced to ``3`` and the variant digit to ``a``.
    Trailing slashes are ignored, so ``https://x/`` and ``https://x`` share an id.

    Args:
        domain: Server URL.

    Returns:
        Identifier such as ``"d4f7c5b1-8a9e-3f2c-a1b2-0c9d8e7f6a5b"``.
    """
    digest = hashlib.sha1(domain.rstrip("/").encode("utf-8")).hexdigest()[:32]
    return "-".join(
        (
            digest[0:8],
            digest[8:12],
            "3" + digest[13:16],
            "a" + digest[17:20],
            digest[20:32],
        )
    )
