from ._config import (
    AccountType,
    ClientCredentials,
    ComputedValue,
    GrantType,
    ParamSource,
    ProviderConfig,
    StaticValue,
)
from ._errors import (
    AuthFailure,
    AuthFailureKind,
    CallbackError,
    ConfigurationError,
    GrantTypeNotImplementedError,
    OAuth2Error,
)
from ._admin_consent import AdminConsentURLBuilder, AzureAdExtensions
from ._client_credentials import ClientCredentialsExchanger
from ._token_client import AccessToken, HttpxTokenClient, TokenClient
from ._token_endpoint import ResolvedEndpoint, TokenEndpointResolver
from .oauth2_azuread_strategy import AuthHash, Identity, OAuth2AzureADStrategy, StrategyHost, StrategyState
from .oauth2_azuread_router import StarletteHost, azuread_auth_router

__all__ = [
    "AccessToken",
    "AccountType",
    "AdminConsentURLBuilder",
    "AuthFailure",
    "AuthFailureKind",
    "AuthHash",
    "AzureAdExtensions",
    "CallbackError",
    "ClientCredentials",
    "ClientCredentialsExchanger",
    "ComputedValue",
    "ConfigurationError",
    "GrantType",
    "GrantTypeNotImplementedError",
    "HttpxTokenClient",
    "Identity",
    "OAuth2AzureADStrategy",
    "OAuth2Error",
    "ParamSource",
    "ProviderConfig",
    "ResolvedEndpoint",
    "StarletteHost",
    "StaticValue",
    "StrategyHost",
    "StrategyState",
    "TokenClient",
    "TokenEndpointResolver",
    "azuread_auth_router",
]
__version__ = "0.0.1"
