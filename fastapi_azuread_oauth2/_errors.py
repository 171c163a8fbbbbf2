from dataclasses import dataclass
from enum import Enum
from typing import Any


class ConfigurationError(Exception):
    """Invalid or incomplete strategy configuration.

    Raised synchronously, before any network call is made.
    """


class GrantTypeNotImplementedError(ConfigurationError):
    """The configured grant type is known but not supported by the strategy."""


class OAuth2Error(Exception):
    """The identity provider rejected a token or user-info request."""

    def __init__(
        self,
        message: str,
        *,
        error: str | None = None,
        error_description: str | None = None,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.error_description = error_description
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        parts = [self.args[0]]
        if self.error:
            parts.append(f"[{self.error}]")
        if self.error_description:
            parts.append(f": {self.error_description}")
        return " ".join(parts)


class CallbackError(Exception):
    """An error reported by the identity provider on the callback request.

    This could be a `redirect_uri_mismatch`, a declined admin consent, etc.
    """

    def __init__(
        self,
        error: str | None,
        error_reason: str | None = None,
        error_uri: str | None = None,
    ) -> None:
        self.error = error
        self.error_reason = error_reason
        self.error_uri = error_uri
        super().__init__(str(self))

    def __str__(self) -> str:
        return " | ".join(p for p in (self.error, self.error_reason, self.error_uri) if p)


class AuthFailureKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    TIMEOUT = "timeout"
    FAILED_TO_CONNECT = "failed_to_connect"


@dataclass(frozen=True)
class AuthFailure:
    """Terminal outcome of a failed authentication attempt."""

    kind: AuthFailureKind
    cause: BaseException

    @property
    def message(self) -> str:
        return str(self.cause)
