from fastapi import FastAPI

from fastapi_azuread_oauth2 import ClientCredentials, ProviderConfig, azuread_auth_router


_azure_config = ProviderConfig(
    credentials=ClientCredentials(
        client_id="add_your_client_id_here",
        client_secret="add_your_client_secret_here",
    ),
    account_type="single",
    tenant_id="add_your_tenant_id_here",
)

app = FastAPI(
    title="Single Tenant Azure AD Client Credentials",
    description="Single Tenant Azure AD Client Credentials",
    version="1.0.0",
)
# GET /auth/azuread starts the admin consent, Azure AD redirects back to /auth/azuread/callback
app.include_router(azuread_auth_router(_azure_config))
