import logging

from ._config import ClientCredentials
from ._token_client import AccessToken, TokenClient
from ._token_endpoint import ResolvedEndpoint

logger = logging.getLogger(__name__)


class ClientCredentialsExchanger:
    """Exchange the application's client credentials for an access token.

    A single call, no retry. Transport failures propagate unchanged so the
    caller can tell a provider rejection from a timeout or a connection error.
    """

    def __init__(self, token_client: TokenClient, site: str) -> None:
        self._token_client = token_client
        self._site = site

    def exchange(self, endpoint: ResolvedEndpoint, creds: ClientCredentials, scope: str) -> AccessToken:
        token_url = self._token_client.build_url(self._site, endpoint.token_url)
        logger.info(
            "Requesting client credentials token",
            extra={"client_id": creds.client_id, "token_url": token_url, "scope": scope},
        )
        token = self._token_client.get_token(
            token_url,
            {
                "grant_type": "client_credentials",
                "client_id": creds.client_id,
                "client_secret": creds.client_secret,
                "scope": scope,
            },
        )
        logger.info(
            "Client credentials token acquired",
            extra={"client_id": creds.client_id, "expires_at": token.expires_at},
        )
        return token
