from unittest.mock import AsyncMock, Mock

import httpx
import pytest

VERIFY_URL = "https://passbolt.test/auth/verify.json?api-version=v1"
LOGIN_URL = "https://passbolt.test/auth/login.json?api-version=v1"


@pytest.fixture
def mock_http() -> Mock:
    http = Mock()
    http.send = AsyncMock(return_value=httpx.Response(httpx.codes.OK))
    return http
