"""
GPGAuth API client layer.

Provides async HTTP communication with GPGAuth servers.
"""

from gpgauth.api.http_client import GpgAuthHttpClient, sanitize_for_log

__all__ = ["GpgAuthHttpClient", "sanitize_for_log"]
