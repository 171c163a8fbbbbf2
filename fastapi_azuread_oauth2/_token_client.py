import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlencode

import httpx

from ._errors import OAuth2Error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessToken:
    """Access token obtained for a single authentication attempt.

    Attributes:
        token: The bearer access token
        refresh_token: Refresh token, when the provider issued one
        expires_at: Absolute expiry as epoch seconds, when the provider sent one
    """

    token: str = field(repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    expires_at: int | None = None

    @property
    def expires(self) -> bool:
        return self.expires_at is not None

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "AccessToken":
        token = payload.get("access_token")
        if not token:
            raise OAuth2Error("Token response is missing access_token", body=dict(payload))
        expires_at = payload.get("expires_at")
        try:
            if expires_at is None and payload.get("expires_in") is not None:
                expires_at = int(time.time()) + int(payload["expires_in"])
            if expires_at is not None:
                expires_at = int(expires_at)
        except (TypeError, ValueError) as e:
            raise OAuth2Error("Token response has an invalid expiry", body=dict(payload)) from e
        return cls(
            token=token,
            refresh_token=payload.get("refresh_token"),
            expires_at=expires_at,
        )


class TokenClient(Protocol):
    """Generic OAuth2 transport used by the strategy."""

    def build_url(self, base: str, path: str, params: Mapping[str, str] | None = None) -> str: ...

    def get_token(self, token_url: str, grant_params: Mapping[str, str]) -> AccessToken: ...

    def http_get(self, url: str, token: AccessToken, params: Mapping[str, str] | None = None) -> Any: ...


def _error_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _json_body(response: httpx.Response, what: str) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as e:
        raise OAuth2Error(f"Malformed {what} response", status_code=response.status_code, body=response.text) from e
    if not isinstance(data, dict):
        raise OAuth2Error(f"Malformed {what} response", status_code=response.status_code, body=response.text)
    return data


class HttpxTokenClient:
    """`TokenClient` backed by a shared `httpx.Client`.

    Timeouts and network failures are raised as the `httpx` exceptions they are;
    provider rejections and malformed responses are turned into `OAuth2Error`.
    """

    def __init__(self, client: httpx.Client | None = None, *, timeout: float = 10.0) -> None:
        self._client = client or httpx.Client(timeout=timeout)

    def build_url(self, base: str, path: str, params: Mapping[str, str] | None = None) -> str:
        url = path if path.startswith(("http://", "https://")) else base.rstrip("/") + "/" + path.lstrip("/")
        if params:
            url = f"{url}?{urlencode(dict(params))}"
        return url

    def get_token(self, token_url: str, grant_params: Mapping[str, str]) -> AccessToken:
        response = self._client.post(
            token_url,
            data=dict(grant_params),
            headers={"Accept": "application/json"},
        )
        if not response.is_success:
            payload = _error_payload(response)
            raise OAuth2Error(
                f"Token request failed with status {response.status_code}",
                error=payload.get("error"),
                error_description=payload.get("error_description"),
                status_code=response.status_code,
                body=payload or response.text,
            )
        return AccessToken.from_response(_json_body(response, "token"))

    def http_get(self, url: str, token: AccessToken, params: Mapping[str, str] | None = None) -> Any:
        response = self._client.get(
            url,
            params=dict(params or {}),
            headers={"Authorization": f"Bearer {token.token}", "Accept": "application/json"},
        )
        if not response.is_success:
            payload = _error_payload(response)
            error = payload.get("error")
            # Graph nests the error object: {"error": {"code": ..., "message": ...}}
            if isinstance(error, dict):
                payload = {"error": error.get("code"), "error_description": error.get("message")}
            raise OAuth2Error(
                f"GET {url} failed with status {response.status_code}",
                error=payload.get("error"),
                error_description=payload.get("error_description"),
                status_code=response.status_code,
                body=payload or response.text,
            )
        return _json_body(response, "user info")

    def close(self) -> None:
        self._client.close()
