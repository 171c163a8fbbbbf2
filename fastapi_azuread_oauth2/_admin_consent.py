import logging
import secrets
from collections.abc import Mapping

from ._config import ProviderConfig, RequestEnv, evaluate
from ._token_client import TokenClient

logger = logging.getLogger(__name__)


class AdminConsentURLBuilder:
    """Build the Azure AD admin-consent redirect URL. No network I/O."""

    def __init__(self, token_client: TokenClient) -> None:
        self._token_client = token_client

    def build(
        self,
        base_url: str,
        admin_consent_path: str,
        client_id: str,
        caller_params: Mapping[str, str],
        redirect_uri: str,
        *,
        state: str | None = None,
    ) -> str:
        """Merge the query parameters and return the admin-consent URL.

        Later sources override earlier ones: a fresh `state`, the caller
        parameters, then `client_id` and `redirect_uri`, which therefore can
        never be overridden by the caller.
        """
        params = {"state": state or secrets.token_hex(24)}
        params.update(caller_params)
        params["client_id"] = client_id
        params["redirect_uri"] = redirect_uri
        return self._token_client.build_url(base_url, admin_consent_path, params)


class AzureAdExtensions:
    """Azure AD specific operations layered on top of a generic `TokenClient`."""

    def __init__(self, config: ProviderConfig, token_client: TokenClient) -> None:
        self.config = config
        self.builder = AdminConsentURLBuilder(token_client)

    def adminconsent_params(self, env: RequestEnv, *, test_mode: bool = False) -> dict[str, str]:
        """Static `adminconsent_params` plus the allow-listed options present in configuration."""
        if test_mode:
            env.setdefault("session", {})

        params = dict(self.config.adminconsent_params)
        for key in self.config.adminconsent_options:
            source = self.config.option_values.get(key)
            if source is None:
                continue
            value = evaluate(source, env)
            if value:
                params[key] = value
        return params

    def adminconsent_url(self, redirect_uri: str, env: RequestEnv, *, test_mode: bool = False) -> str:
        params = self.adminconsent_params(env, test_mode=test_mode)
        logger.debug("Building admin consent URL", extra={"params": sorted(params)})
        return self.builder.build(
            self.config.site,
            self.config.adminconsent_url,
            self.config.client_id,
            params,
            redirect_uri,
        )
