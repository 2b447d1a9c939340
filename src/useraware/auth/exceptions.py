"""Errors raised while authorizing requests and refreshing access tokens."""

from typing import TYPE_CHECKING, Optional

from authlib.common.errors import AuthlibBaseError

if TYPE_CHECKING:
    from useraware.auth.models import GoogleRefreshTokenErrorResponse


class ConfigurationError(ValueError):
    """The plugin or a request was set up incorrectly. Not recoverable at runtime."""


class RefreshTokenError(AuthlibBaseError):
    """The Google token endpoint did not return a new access token."""

    def __init__(
        self,
        message: str,
        response: Optional["GoogleRefreshTokenErrorResponse"] = None,
        status_code: Optional[int] = None,
    ):
        if response is not None:
            super().__init__(error=response.error, description=response.error_description, uri=response.error_uri)
        else:
            super().__init__()
        self.args = (message,)
        self.response = response
        self.status_code = status_code

    def __str__(self) -> str:
        return self.args[0]


class RefreshTokenRejectedError(RefreshTokenError):
    """The refresh token is permanently invalid (``invalid_grant``). The user must authorize again."""


class RefreshTokenFailedError(RefreshTokenError):
    """The refresh failed for another, possibly transient, reason."""
