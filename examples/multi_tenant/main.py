from fastapi import FastAPI

from fastapi_azuread_oauth2 import ComputedValue, ProviderConfig, azuread_auth_router


def _scope_from_session(env) -> str | None:
    return env.get("session", {}).get("requested_scope")


# Reads OAUTH_CLIENT_ID and OAUTH_CLIENT_SECRET from the environment.
# Start the flow with GET /auth/azuread?tenant=<customer tenant id>.
_azure_config = ProviderConfig.from_env(
    account_type="multiple",
    option_values={"scope": ComputedValue(_scope_from_session)},
)

app = FastAPI(
    title="Multi Tenant Azure AD Client Credentials",
    description="Multi Tenant Azure AD Client Credentials",
    version="1.0.0",
)
app.include_router(azuread_auth_router(_azure_config))
