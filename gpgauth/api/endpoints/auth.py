"""GPGAuth verify and login endpoints."""

import httpx

from gpgauth.api.http_client import GpgAuthHttpClient

KEYID_FIELD = "data[gpg_auth][keyid]"
SERVER_VERIFY_TOKEN_FIELD = "data[gpg_auth][server_verify_token]"
USER_TOKEN_RESULT_FIELD = "data[gpg_auth][user_token_result]"


async def get_server_key(http: GpgAuthHttpClient, url: str) -> httpx.Response:
    """
    Fetch the server's public key.

    Args:
        http: Open HTTP client.
        url: Verify endpoint URL.

    Returns:
        Response whose JSON body holds ``{"body": {"fingerprint", "keydata"}}``.
    """
    return await http.send("GET", url)


async def verify(
    http: GpgAuthHttpClient,
    url: str,
    *,
    keyid: str,
    server_verify_token: str,
) -> httpx.Response:
    """
    Ask the server to decrypt a nonce encrypted to its key.

    Args:
        http: Open HTTP client.
        url: Verify endpoint URL.
        keyid: User key fingerprint.
        server_verify_token: Nonce encrypted to the server key, ASCII-armored.

    Returns:
        Response carrying the verify-response header.
    """
    return await http.send(
        "POST",
        url,
        form={KEYID_FIELD: keyid, SERVER_VERIFY_TOKEN_FIELD: server_verify_token},
    )


async def login_stage1(http: GpgAuthHttpClient, url: str, *, keyid: str) -> httpx.Response:
    """Request a user auth token encrypted to the user's key."""
    return await http.send("POST", url, form={KEYID_FIELD: keyid})


async def login_stage2(
    http: GpgAuthHttpClient,
    url: str,
    *,
    keyid: str,
    user_token_result: str,
) -> httpx.Response:
    """Send the decrypted user auth token back to complete the login."""
    return await http.send(
        "POST",
        url,
        form={KEYID_FIELD: keyid, USER_TOKEN_RESULT_FIELD: user_token_result},
    )
