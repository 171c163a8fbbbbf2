import logging
import socket
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

import httpx

from ._admin_consent import AzureAdExtensions
from ._client_credentials import ClientCredentialsExchanger
from ._config import GrantType, ProviderConfig, RequestEnv
from ._errors import (
    AuthFailure,
    AuthFailureKind,
    CallbackError,
    ConfigurationError,
    GrantTypeNotImplementedError,
    OAuth2Error,
)
from ._token_client import AccessToken, TokenClient
from ._token_endpoint import ResolvedEndpoint, TokenEndpointResolver

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class StrategyHost(Protocol):
    """What the hosting web framework provides to one authentication attempt."""

    params: Mapping[str, str]
    env: RequestEnv
    test_mode: bool

    def callback_url(self) -> str: ...

    def redirect(self, url: str) -> None: ...

    def fail(self, kind: AuthFailureKind, cause: BaseException) -> None: ...


class StrategyState(str, Enum):
    IDLE = "idle"
    REQUEST_ISSUED = "request_issued"
    CALLBACK_RECEIVED = "callback_received"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True)
class Identity:
    id: str | None
    display_name: str | None
    email: str | None
    raw_attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthHash:
    """Normalized identity record handed back to the hosting framework."""

    provider: str
    uid: str | None
    info: dict[str, Any]
    credentials: dict[str, Any]
    extra: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "uid": self.uid,
            "info": self.info,
            "credentials": self.credentials,
            "extra": self.extra,
        }


class OAuth2AzureADStrategy:
    """Azure AD OAuth2 strategy for the client credentials grant.

    One instance drives exactly one authentication attempt: the request phase
    redirects to the admin-consent page, the callback phase exchanges the client
    credentials for an access token. The identity is fetched from Microsoft Graph
    on first use and memoized.

    Only `config` and the `token_client` may be shared between instances; every
    other attribute is scoped to the attempt.
    """

    name = "azuread"

    def __init__(
        self,
        config: ProviderConfig,
        host: StrategyHost,
        token_client: TokenClient,
        *,
        resolver: TokenEndpointResolver | None = None,
        exchanger: ClientCredentialsExchanger | None = None,
    ) -> None:
        self.config = config
        self.host = host
        self.token_client = token_client
        self.resolver = resolver or TokenEndpointResolver()
        self.exchanger = exchanger or ClientCredentialsExchanger(token_client, config.site)
        self.extensions = AzureAdExtensions(config, token_client)

        self.state = StrategyState.IDLE
        self.access_token: AccessToken | None = None
        self.callback_error: CallbackError | None = None
        self.failure: AuthFailure | None = None
        self._endpoint: ResolvedEndpoint | None = None
        self._raw_info: dict[str, Any] = _UNSET

    def callback_url(self) -> str:
        return self.config.redirect_uri or self.host.callback_url()

    def token_endpoint(self) -> ResolvedEndpoint:
        """Resolve the token endpoint once for this attempt."""
        if self._endpoint is None:
            self._endpoint = self.resolver.resolve(self.config, self.host.params.get("tenant"))
        return self._endpoint

    def request_phase(self) -> None:
        match self.config.grant_type:
            case GrantType.CLIENT_CREDENTIALS:
                self.token_endpoint()
                url = self.extensions.adminconsent_url(
                    self.callback_url(),
                    self.host.env,
                    test_mode=self.host.test_mode,
                )
                self.state = StrategyState.REQUEST_ISSUED
                logger.info("Redirecting to admin consent", extra={"client_id": self.config.client_id})
                self.host.redirect(url)
            case GrantType.AUTHORIZATION_CODE:
                raise GrantTypeNotImplementedError("The authorization_code grant is not implemented")
            case _:
                raise ConfigurationError(f"Unknown grant_type: {self.config.grant_type!r}")

    def callback_phase(self) -> None:
        self.state = StrategyState.CALLBACK_RECEIVED
        params = self.host.params
        if params.get("error_reason") or params.get("error"):
            # Kept for diagnostics, the outcome of the exchange decides the attempt.
            self.callback_error = CallbackError(
                params.get("error"),
                params.get("error_reason") or params.get("error_description"),
                params.get("error_uri"),
            )
            logger.warning("Callback carries an error", extra={"error": str(self.callback_error)})

        match self.config.grant_type:
            case GrantType.CLIENT_CREDENTIALS:
                endpoint = self.token_endpoint()
                with self._failure_boundary():
                    self.access_token = self.exchanger.exchange(
                        endpoint,
                        self.config.credentials,
                        self.config.scope,
                    )
                    self.state = StrategyState.AUTHENTICATED
            case GrantType.AUTHORIZATION_CODE:
                raise GrantTypeNotImplementedError("The authorization_code grant is not implemented")
            case _:
                raise ConfigurationError(f"Unknown grant_type: {self.config.grant_type!r}")

    def raw_info(self) -> dict[str, Any]:
        if self._raw_info is _UNSET:
            if self.access_token is None:
                raise RuntimeError("raw_info requested before a successful callback phase")
            self._raw_info = self.token_client.http_get(
                self.config.userinfo_url,
                self.access_token,
                {"$select": self.config.select_properties},
            )
        return self._raw_info

    def uid(self) -> str | None:
        return self.raw_info().get("id")

    def info(self) -> dict[str, Any]:
        raw_info = self.raw_info()
        return {"name": raw_info.get("displayName"), "email": raw_info.get("mail")}

    def credentials(self) -> dict[str, Any]:
        if self.access_token is None:
            raise RuntimeError("credentials requested before a successful callback phase")
        creds: dict[str, Any] = {"token": self.access_token.token}
        if self.access_token.refresh_token:
            creds["refresh_token"] = self.access_token.refresh_token
        if self.access_token.expires_at is not None:
            creds["expires_at"] = self.access_token.expires_at
        creds["expires"] = self.access_token.expires
        return creds

    def extra(self) -> dict[str, Any]:
        return {"raw_info": self.raw_info()}

    def identity(self) -> Identity:
        raw_info = self.raw_info()
        return Identity(
            id=raw_info.get("id"),
            display_name=raw_info.get("displayName"),
            email=raw_info.get("mail"),
            raw_attributes=dict(raw_info),
        )

    def auth_hash(self) -> AuthHash | None:
        """Build the auth hash, or return None when fetching the identity failed."""
        with self._failure_boundary():
            return AuthHash(
                provider=self.name,
                uid=self.uid(),
                info=self.info(),
                credentials=self.credentials(),
                extra=self.extra(),
            )
        return None

    @contextmanager
    def _failure_boundary(self) -> Iterator[None]:
        try:
            yield
        except (OAuth2Error, CallbackError) as e:
            self._fail(AuthFailureKind.INVALID_CREDENTIALS, e)
        except (httpx.TimeoutException, TimeoutError) as e:
            self._fail(AuthFailureKind.TIMEOUT, e)
        except (httpx.TransportError, socket.gaierror, ConnectionError) as e:
            self._fail(AuthFailureKind.FAILED_TO_CONNECT, e)

    def _fail(self, kind: AuthFailureKind, cause: BaseException) -> None:
        self.state = StrategyState.FAILED
        if self.failure is not None:
            return
        self.failure = AuthFailure(kind, cause)
        logger.warning(
            "Authentication failed",
            extra={"kind": kind.value, "cause": type(cause).__name__, "reason": str(cause)},
        )
        self.host.fail(kind, cause)
