import pytest

from fastapi_azuread_oauth2 import (
    AccountType,
    ClientCredentials,
    ComputedValue,
    ConfigurationError,
    GrantType,
    ProviderConfig,
    StaticValue,
)


def test_defaults(config: ProviderConfig) -> None:
    assert config.site == "https://login.microsoftonline.com"
    assert config.adminconsent_url == "/common/v2.0/adminconsent"
    assert config.account_type is AccountType.COMPLEX
    assert config.grant_type is GrantType.CLIENT_CREDENTIALS
    assert config.select_properties == "id,displayName,mail"
    assert config.adminconsent_options == ("scope", "state")
    assert config.token_url is None


def test_single_account_type_requires_tenant_id(credentials: ClientCredentials) -> None:
    with pytest.raises(ConfigurationError, match="tenant_id"):
        ProviderConfig(credentials=credentials, account_type="single")


def test_single_account_type_with_tenant_id(credentials: ClientCredentials) -> None:
    config = ProviderConfig(credentials=credentials, account_type="single", tenant_id="contoso")
    assert config.account_type is AccountType.SINGLE


@pytest.mark.parametrize("option", ["account_type", "grant_type"])
def test_unknown_values_are_rejected(credentials: ClientCredentials, option: str) -> None:
    with pytest.raises(ConfigurationError, match="Unknown"):
        ProviderConfig(credentials=credentials, **{option: "bogus"})


def test_missing_client_id_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="client_id"):
        ProviderConfig(credentials=ClientCredentials(client_id="", client_secret="secret"))


def test_plain_option_values_become_static(credentials: ClientCredentials) -> None:
    accessor = ComputedValue(lambda env: "computed")
    config = ProviderConfig(credentials=credentials, option_values={"scope": "openid", "state": accessor})
    assert config.option_values["scope"] == StaticValue("openid")
    assert config.option_values["state"] is accessor


def test_secret_is_not_in_repr(credentials: ClientCredentials) -> None:
    assert "secret" not in repr(credentials)


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OAUTH_CLIENT_ID", "env-client")
    monkeypatch.setenv("OAUTH_CLIENT_SECRET", "env-secret")
    monkeypatch.setenv("OAUTH_TENANT_ID", "env-tenant")
    monkeypatch.setenv("OAUTH_AZUREAD_ACCOUNT_TYPE", "single")
    monkeypatch.delenv("OAUTH_GRANT_TYPE", raising=False)
    monkeypatch.delenv("OAUTH_REDIRECT_URI", raising=False)

    config = ProviderConfig.from_env(select_properties="id")

    assert config.client_id == "env-client"
    assert config.credentials.client_secret == "env-secret"
    assert config.tenant_id == "env-tenant"
    assert config.account_type is AccountType.SINGLE
    assert config.select_properties == "id"


def test_from_env_without_tenant_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OAUTH_CLIENT_ID", "env-client")
    monkeypatch.setenv("OAUTH_AZUREAD_ACCOUNT_TYPE", "single")
    monkeypatch.delenv("OAUTH_TENANT_ID", raising=False)

    with pytest.raises(ConfigurationError):
        ProviderConfig.from_env()
