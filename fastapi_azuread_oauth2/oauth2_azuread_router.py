import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import RedirectResponse

from ._config import ProviderConfig
from ._errors import AuthFailureKind
from ._token_client import HttpxTokenClient, TokenClient
from .oauth2_azuread_strategy import OAuth2AzureADStrategy

logger = logging.getLogger(__name__)

CALLBACK_ROUTE_NAME = "azuread_callback"


class StarletteHost:
    """Expose one Starlette request to the strategy as its hosting framework."""

    def __init__(self, request: Request, *, test_mode: bool = False) -> None:
        self.request = request
        self.params = dict(request.query_params)
        self.env = request.scope
        self.test_mode = test_mode
        self.redirect_url: str | None = None
        self.failure: tuple[AuthFailureKind, BaseException] | None = None

    def callback_url(self) -> str:
        return str(self.request.url_for(CALLBACK_ROUTE_NAME))

    def redirect(self, url: str) -> None:
        self.redirect_url = url

    def fail(self, kind: AuthFailureKind, cause: BaseException) -> None:
        self.failure = (kind, cause)

    def raise_for_failure(self) -> None:
        if self.failure is None:
            return
        kind, cause = self.failure
        raise HTTPException(status_code=401, detail={"error": kind.value, "message": str(cause)})


def azuread_auth_router(
    config: ProviderConfig,
    *,
    prefix: str = "/auth/azuread",
    token_client: TokenClient | None = None,
    test_mode: bool = False,
) -> APIRouter:
    """Create the request and callback endpoints of the Azure AD strategy.

    Args
    ----
        config (ProviderConfig): Shared strategy configuration.
        prefix (str): Path of the request phase, the callback lives under `{prefix}/callback`.
        token_client (TokenClient | None): Transport, an `HttpxTokenClient` by default,
            closed on application shutdown. A caller supplied client is left open.
        test_mode (bool): Ensure a session exists on the request scope.

    Returns
    -------
        APIRouter: The router to include in the application.
    """
    on_shutdown = []
    if token_client is None:
        # Owned by the router, closed with the application.
        token_client = HttpxTokenClient()
        on_shutdown.append(token_client.close)
    client = token_client
    router = APIRouter(prefix=prefix, tags=["Azure AD"], on_shutdown=on_shutdown)

    # Plain `def` endpoints: FastAPI runs them in its threadpool, one attempt per thread.
    @router.get("", name="azuread_request")
    def request_phase(request: Request) -> RedirectResponse:
        host = StarletteHost(request, test_mode=test_mode)
        OAuth2AzureADStrategy(config, host, client).request_phase()
        if host.redirect_url is None:
            raise HTTPException(status_code=500, detail="Request phase did not redirect")
        return RedirectResponse(host.redirect_url, status_code=302)

    @router.get("/callback", name=CALLBACK_ROUTE_NAME)
    def callback_phase(request: Request) -> dict[str, Any]:
        host = StarletteHost(request, test_mode=test_mode)
        strategy = OAuth2AzureADStrategy(config, host, client)
        strategy.callback_phase()
        host.raise_for_failure()
        auth = strategy.auth_hash()
        host.raise_for_failure()
        assert auth is not None
        request.state.auth = auth
        logger.info("Azure AD authentication succeeded", extra={"uid": auth.uid})
        return auth.to_dict()

    return router
