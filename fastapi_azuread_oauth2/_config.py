from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass, field
from enum import Enum
from os import getenv
from types import MappingProxyType
from typing import Any

from ._errors import ConfigurationError

BASE_MSONLINE_URL = "https://login.microsoftonline.com"
BASE_MSGRAPH_URL = "https://graph.microsoft.com/v1.0"
GRAPH_DEFAULT_SCOPE = "https://graph.microsoft.com/.default"
ADMINCONSENT_PATH = "/common/v2.0/adminconsent"
DEFAULT_SELECT_PROPERTIES = "id,displayName,mail"

RequestEnv = MutableMapping[str, Any]


class AccountType(str, Enum):
    """Supported Azure AD account types.

    `single`: accounts in a single organizational directory only.
    `multiple`: accounts in any organizational directory.
    `complex`: accounts in any organizational directory and personal Microsoft accounts.
    """

    SINGLE = "single"
    MULTIPLE = "multiple"
    COMPLEX = "complex"


class GrantType(str, Enum):
    CLIENT_CREDENTIALS = "client_credentials"
    # Reserved, the strategy refuses it with GrantTypeNotImplementedError.
    AUTHORIZATION_CODE = "authorization_code"


@dataclass(frozen=True)
class StaticValue:
    value: str


@dataclass(frozen=True)
class ComputedValue:
    """A parameter computed from the current request environment."""

    accessor: Callable[[RequestEnv], str | None]


ParamSource = StaticValue | ComputedValue


def evaluate(source: ParamSource, env: RequestEnv) -> str | None:
    if isinstance(source, ComputedValue):
        return source.accessor(env)
    return source.value


@dataclass(frozen=True)
class ClientCredentials:
    client_id: str
    client_secret: str = field(repr=False)


def _coerce(enum_type: type[Enum], value: Any, option: str) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        raise ConfigurationError(f"Unknown {option}: {value!r}") from None


@dataclass(frozen=True)
class ProviderConfig:
    """Process-wide, immutable configuration of the Azure AD strategy.

    Validated on construction so that an invalid account type, grant type or a
    `single` account type without `tenant_id` is rejected before first use.
    """

    credentials: ClientCredentials
    tenant_id: str | None = None
    site: str = BASE_MSONLINE_URL
    token_url: str | None = None
    adminconsent_url: str = ADMINCONSENT_PATH
    account_type: AccountType = AccountType.COMPLEX
    grant_type: GrantType = GrantType.CLIENT_CREDENTIALS
    adminconsent_params: Mapping[str, str] = field(default_factory=dict)
    adminconsent_options: tuple[str, ...] = ("scope", "state")
    option_values: Mapping[str, ParamSource] = field(default_factory=dict)
    select_properties: str = DEFAULT_SELECT_PROPERTIES
    userinfo_url: str = f"{BASE_MSGRAPH_URL}/me"
    scope: str = GRAPH_DEFAULT_SCOPE
    redirect_uri: str | None = None

    def __post_init__(self) -> None:
        if not self.credentials.client_id:
            raise ConfigurationError("Missing client_id")
        object.__setattr__(self, "account_type", _coerce(AccountType, self.account_type, "azuread_account_type"))
        object.__setattr__(self, "grant_type", _coerce(GrantType, self.grant_type, "grant_type"))
        if self.account_type is AccountType.SINGLE and not self.tenant_id:
            raise ConfigurationError("Missing tenant_id, required by the 'single' account type")
        sources = {
            key: value if isinstance(value, (StaticValue, ComputedValue)) else StaticValue(value)
            for key, value in self.option_values.items()
        }
        object.__setattr__(self, "option_values", MappingProxyType(sources))
        object.__setattr__(self, "adminconsent_params", MappingProxyType(dict(self.adminconsent_params)))
        object.__setattr__(self, "adminconsent_options", tuple(self.adminconsent_options))

    @property
    def client_id(self) -> str:
        return self.credentials.client_id

    @classmethod
    def from_env(cls, **overrides: Any) -> "ProviderConfig":
        """Build a configuration from `OAUTH_*` environment variables.

        Keyword arguments take precedence over the environment.
        """
        values: dict[str, Any] = {
            "tenant_id": getenv("OAUTH_TENANT_ID"),
            "account_type": getenv("OAUTH_AZUREAD_ACCOUNT_TYPE", AccountType.COMPLEX.value),
            "grant_type": getenv("OAUTH_GRANT_TYPE", GrantType.CLIENT_CREDENTIALS.value),
            "redirect_uri": getenv("OAUTH_REDIRECT_URI"),
        }
        values.update(overrides)
        if "credentials" not in values:
            values["credentials"] = ClientCredentials(
                client_id=getenv("OAUTH_CLIENT_ID", ""),
                client_secret=getenv("OAUTH_CLIENT_SECRET", ""),
            )
        return cls(**values)
