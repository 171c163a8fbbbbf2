from typing import Any

import httpx
import pytest

from fastapi_azuread_oauth2 import (
    AccessToken,
    ClientCredentials,
    HttpxTokenClient,
    ProviderConfig,
)

CALLBACK_URL = "https://app.example.com/auth/azuread/callback"


class FakeHost:
    """Records what the strategy asks the hosting framework to do."""

    def __init__(self, params: dict[str, str] | None = None, *, test_mode: bool = False) -> None:
        self.params = params or {}
        self.env: dict[str, Any] = {}
        self.test_mode = test_mode
        self.redirects: list[str] = []
        self.failures: list[tuple[Any, BaseException]] = []

    def callback_url(self) -> str:
        return CALLBACK_URL

    def redirect(self, url: str) -> None:
        self.redirects.append(url)

    def fail(self, kind: Any, cause: BaseException) -> None:
        self.failures.append((kind, cause))


class RecordingTokenClient(HttpxTokenClient):
    """Real URL building, scripted token and user-info responses."""

    def __init__(self) -> None:
        super().__init__(httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500))))
        self.token = AccessToken(token="tok")
        self.token_error: BaseException | None = None
        self.userinfo: dict[str, Any] = {"id": "user-1", "displayName": "Ada Lovelace", "mail": "ada@example.com"}
        self.userinfo_error: BaseException | None = None
        self.token_calls: list[tuple[str, dict[str, str]]] = []
        self.get_calls: list[tuple[str, AccessToken, dict[str, str]]] = []

    def get_token(self, token_url, grant_params):
        self.token_calls.append((token_url, dict(grant_params)))
        if self.token_error is not None:
            raise self.token_error
        return self.token

    def http_get(self, url, token, params=None):
        self.get_calls.append((url, token, dict(params or {})))
        if self.userinfo_error is not None:
            raise self.userinfo_error
        return self.userinfo


@pytest.fixture
def credentials() -> ClientCredentials:
    return ClientCredentials(client_id="cid", client_secret="secret")


@pytest.fixture
def config(credentials: ClientCredentials) -> ProviderConfig:
    return ProviderConfig(credentials=credentials)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def token_client() -> RecordingTokenClient:
    return RecordingTokenClient()


@pytest.fixture
def make_host():
    return FakeHost
