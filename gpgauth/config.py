"""
GPGAuth client configuration.
"""

from dataclasses import dataclass, field

from gpgauth.models.token import DEFAULT_TOKEN_FORMAT, TokenFormat


@dataclass(frozen=True, kw_only=True)
class GpgAuthConfig:
    """
    Attributes:
        base_url: Base URL of the server, used for login and referrer URLs.
        verify_path: Path of the server key verification endpoint.
        login_path: Path of the login endpoint (stage 1 and stage 2).
        timeout: Request timeout in seconds.
        user_agent: User-Agent header value.
        header_prefix: Prefix shared by all protocol response headers.
        protocol_version: Expected protocol version header value. When set, the
            version header is required at every stage and must match exactly.
        token_format: Grammar of the tokens exchanged with the server.
    """

    base_url: str
    verify_path: str = "/auth/verify.json?api-version=v1"
    login_path: str = "/auth/login.json?api-version=v1"
    timeout: float = 30.0
    user_agent: str = "GpgAuth-Python/1.0"
    header_prefix: str = "X-GPGAuth-"
    protocol_version: str | None = None
    token_format: TokenFormat = field(default=DEFAULT_TOKEN_FORMAT)

    def __post_init__(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            msg = "base_url must be an http(s) URL"
            raise ValueError(msg)
        if self.timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        if not self.verify_path.startswith("/") or not self.login_path.startswith("/"):
            msg = "verify_path and login_path must start with '/'"
            raise ValueError(msg)
        if not self.header_prefix:
            msg = "header_prefix must not be empty"
            raise ValueError(msg)

    @property
    def server_url(self) -> str:
        """Base URL without trailing slash."""
        return self.base_url.rstrip("/")

    @property
    def verify_url(self) -> str:
        return self.server_url + self.verify_path

    @property
    def login_url(self) -> str:
        return self.server_url + self.login_path
