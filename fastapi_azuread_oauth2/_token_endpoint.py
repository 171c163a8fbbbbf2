from dataclasses import dataclass
from urllib.parse import quote

from ._config import AccountType, ProviderConfig
from ._errors import ConfigurationError

COMMON_TOKEN_PATH = "/common/oauth2/v2.0/token"
TENANT_TOKEN_PATH = "/{tenant}/oauth2/v2.0/token"


@dataclass(frozen=True)
class ResolvedEndpoint:
    token_url: str


class TokenEndpointResolver:
    """Derive the token endpoint path from the configured account type.

    An explicitly configured `token_url` always wins. Otherwise `complex` uses the
    common endpoint, `multiple` the tenant sent with the request and `single` the
    configured tenant.
    """

    def resolve(self, config: ProviderConfig, request_tenant: str | None = None) -> ResolvedEndpoint:
        if config.token_url:
            return ResolvedEndpoint(config.token_url)

        match config.account_type:
            case AccountType.COMPLEX:
                return ResolvedEndpoint(COMMON_TOKEN_PATH)
            case AccountType.MULTIPLE:
                if not request_tenant:
                    raise ConfigurationError("The 'multiple' account type requires a 'tenant' request parameter")
                return ResolvedEndpoint(TENANT_TOKEN_PATH.format(tenant=quote(request_tenant, safe="")))
            case AccountType.SINGLE:
                if not config.tenant_id:
                    raise ConfigurationError("Missing tenant_id, required by the 'single' account type")
                return ResolvedEndpoint(TENANT_TOKEN_PATH.format(tenant=config.tenant_id))
            case _:
                raise ConfigurationError(f"Unknown azuread_account_type: {config.account_type!r}")

