"""Protocol definitions for the plugin callbacks and the send step."""

from typing import Awaitable, Optional, Protocol

import httpx

from useraware.auth.context import RequestContext


class AccessTokenFetcher(Protocol):
    """Return the current access token for ``uid``."""

    def __call__(self, uid: str) -> Awaitable[str]: ...


class RefreshTokenFetcher(Protocol):
    """Return the stored refresh token for ``uid``."""

    def __call__(self, uid: str) -> Awaitable[str]: ...


class AccessTokenUpdatedCallback(Protocol):
    """Persist a freshly issued access token."""

    def __call__(
        self,
        uid: str,
        access_token: str,
        expires_in_seconds: int,
        scope: Optional[str],
        id_token: Optional[str],
    ) -> Awaitable[None]: ...


class RefreshTokenRejectedCallback(Protocol):
    """Discard a refresh token that Google will no longer accept."""

    def __call__(self, uid: str) -> Awaitable[None]: ...


class SendRequest(Protocol):
    """Send a request through the client pipeline with the given context."""

    def __call__(self, request: httpx.Request, context: RequestContext) -> Awaitable[httpx.Response]: ...
