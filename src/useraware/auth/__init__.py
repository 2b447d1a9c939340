import logging
from logging import NullHandler

logging.getLogger(__name__).addHandler(NullHandler())

try:
    from ._version import __version__
except ImportError:
    __version__ = "0.0.0"

GOOGLE_TOKEN_ENDPOINT = "https://accounts.google.com/o/oauth2/token"

from useraware.auth.context import RequestContext  # noqa: E402
from useraware.auth.exceptions import (  # noqa: E402
    ConfigurationError,
    RefreshTokenError,
    RefreshTokenFailedError,
    RefreshTokenRejectedError,
)
from useraware.auth.plugin import UserAwareGoogleAuth  # noqa: E402

__all__ = [
    "GOOGLE_TOKEN_ENDPOINT",
    "ConfigurationError",
    "RefreshTokenError",
    "RefreshTokenFailedError",
    "RefreshTokenRejectedError",
    "RequestContext",
    "UserAwareGoogleAuth",
]
