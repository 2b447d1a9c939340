"""Per-user Google OAuth2 bearer auth with refresh-on-401 for outgoing requests."""

import asyncio
import logging
from typing import Dict, Optional

import httpx
from authlib.oauth2.rfc6749.parameters import prepare_token_request

from useraware.auth import GOOGLE_TOKEN_ENDPOINT
from useraware.auth._user_agent import get_user_agent
from useraware.auth._protocols import (
    AccessTokenFetcher,
    AccessTokenUpdatedCallback,
    RefreshTokenFetcher,
    RefreshTokenRejectedCallback,
    SendRequest,
)
from useraware.auth.context import RequestContext
from useraware.auth.credentials_parser import ANY_AUTH_TYPE, resolve_client_credentials
from useraware.auth.exceptions import ConfigurationError, RefreshTokenFailedError, RefreshTokenRejectedError
from useraware.auth.models import RefreshRejected, RefreshSuccess, classify_refresh_response

log = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
# Recomputed by httpx from the buffered body of a replayed request
FRAMING_HEADERS = ("Content-Length", "Transfer-Encoding")


async def _ignore_access_token_updated(
    uid: str, access_token: str, expires_in_seconds: int, scope: Optional[str], id_token: Optional[str]
) -> None:
    pass


async def _ignore_refresh_token_rejected(uid: str) -> None:
    pass


def set_bearer_token(request: httpx.Request, access_token: str) -> None:
    """Replace any Authorization header on the request with a bearer token."""
    if AUTHORIZATION_HEADER in request.headers:
        del request.headers[AUTHORIZATION_HEADER]
    request.headers[AUTHORIZATION_HEADER] = f"Bearer {access_token}"


def _clean_url(url: httpx.URL) -> str:
    """URL without query parameters, for logging."""
    return f"{url.scheme}://{url.host}{url.path}"


def copy_request(request: httpx.Request) -> httpx.Request:
    """Copy a request whose body has already been read."""
    headers = request.headers.copy()
    for name in FRAMING_HEADERS:
        if name in headers:
            del headers[name]
    return httpx.Request(
        request.method,
        request.url,
        headers=headers,
        content=request.content or None,
        extensions=dict(request.extensions),
    )


class UserAwareGoogleAuth:
    """Attaches each user's Google access token to requests and refreshes it on 401.

    The plugin exposes two hooks that a client runs around every request:

    - ``before_send`` looks up the access token for the request's uid and sets the
      ``Authorization: Bearer`` header.
    - ``after_receive`` inspects the response. On a 401 it exchanges the user's
      refresh token at the Google token endpoint, reports the new access token and
      replays the original request once with it.

    Token storage stays with the caller, through four async callbacks.

    Example:
        auth = UserAwareGoogleAuth(
            google_client_id="...",
            google_client_secret="...",
            fetch_access_token=store.access_token,
            fetch_refresh_token=store.refresh_token,
            on_access_token_updated=store.save_access_token,
            on_refresh_token_rejected=store.forget_user,
        )
        async with UserAwareAsyncClient(auth) as client:
            response = await client.get("https://www.googleapis.com/oauth2/v3/userinfo", uid="u1")
    """

    def __init__(
        self,
        *,
        fetch_access_token: AccessTokenFetcher,
        fetch_refresh_token: RefreshTokenFetcher,
        google_client_id: Optional[str] = None,
        google_client_secret: Optional[str] = None,
        auth: ANY_AUTH_TYPE = None,
        on_access_token_updated: Optional[AccessTokenUpdatedCallback] = None,
        on_refresh_token_rejected: Optional[RefreshTokenRejectedCallback] = None,
        deduplicate_refreshes: bool = False,
    ):
        """
        Args:
            fetch_access_token: Async lookup of the current access token for a uid
            fetch_refresh_token: Async lookup of the stored refresh token for a uid
            google_client_id: OAuth2 client id
            google_client_secret: OAuth2 client secret
            auth: Alternative to the client id/secret pair - a (client_id, client_secret) tuple,
                a dict or a path to a Google client secrets json file
            on_access_token_updated: Called with (uid, access_token, expires_in_seconds, scope, id_token)
                after a successful refresh
            on_refresh_token_rejected: Called with the uid when Google rejects the refresh token
            deduplicate_refreshes: Share one token exchange between concurrent 401s for the same uid
        """
        client_id, client_secret = resolve_client_credentials(auth, google_client_id, google_client_secret)
        if not client_id:
            raise ConfigurationError("Specify google_client_id")
        if not client_secret:
            raise ConfigurationError("Specify google_client_secret")
        for name, callback in (
            ("fetch_access_token", fetch_access_token),
            ("fetch_refresh_token", fetch_refresh_token),
            ("on_access_token_updated", on_access_token_updated),
            ("on_refresh_token_rejected", on_refresh_token_rejected),
        ):
            if callback is not None and not callable(callback):
                raise ConfigurationError(f"{name} must be callable, got {type(callback).__name__}")
        if fetch_access_token is None:
            raise ConfigurationError("Specify fetch_access_token")
        if fetch_refresh_token is None:
            raise ConfigurationError("Specify fetch_refresh_token")

        self.google_client_id = client_id
        self._google_client_secret = client_secret
        self._fetch_access_token = fetch_access_token
        self._fetch_refresh_token = fetch_refresh_token
        self._on_access_token_updated = on_access_token_updated or _ignore_access_token_updated
        self._on_refresh_token_rejected = on_refresh_token_rejected or _ignore_refresh_token_rejected
        self.deduplicate_refreshes = deduplicate_refreshes
        self._inflight_refreshes: Dict[str, "asyncio.Future[RefreshSuccess]"] = {}

    @staticmethod
    def _require_uid(context: RequestContext) -> str:
        if not context.uid:
            raise ConfigurationError("You did not specify a uid for the request.")
        return context.uid

    async def before_send(self, request: httpx.Request, context: RequestContext) -> None:
        """Set the bearer header for the request's user, unless auth is suppressed."""
        if context.suppress_auth:
            return
        uid = self._require_uid(context)
        access_token = await self._fetch_access_token(uid)
        set_bearer_token(request, access_token)

    async def after_receive(
        self,
        request: httpx.Request,
        response: httpx.Response,
        context: RequestContext,
        send: SendRequest,
    ) -> httpx.Response:
        """Refresh the access token and replay the request once if the response is a 401.

        Returns the response unchanged for any other status and for suppressed requests.

        Raises:
            RefreshTokenRejectedError: Google rejected the refresh token (``invalid_grant``)
            RefreshTokenFailedError: The refresh failed for any other reason
        """
        if response.status_code != httpx.codes.UNAUTHORIZED:
            return response
        # The token call and the replay must never refresh again
        if context.suppress_auth:
            return response

        uid = self._require_uid(context)
        # Drain the 401 so the connection can be reused
        await response.aread()
        await response.aclose()
        log.debug(f"Got 401 for {request.method} {_clean_url(request.url)}, refreshing access token")
        token = await self.refresh(uid, send)

        replay = copy_request(request)
        set_bearer_token(replay, token.access_token)
        log.debug(f"Replaying {request.method} {_clean_url(request.url)} with refreshed access token")
        replayed = await send(replay, RequestContext.internal(uid))
        replayed.history = [*replayed.history, response]
        return replayed

    async def refresh(self, uid: str, send: SendRequest) -> RefreshSuccess:
        """Exchange the refresh token for ``uid`` for a new access token."""
        if not self.deduplicate_refreshes:
            return await self._exchange(uid, send)

        inflight = self._inflight_refreshes.get(uid)
        if inflight is None:
            inflight = asyncio.ensure_future(self._exchange(uid, send))
            self._inflight_refreshes[uid] = inflight
            inflight.add_done_callback(lambda fut: self._refresh_done(uid, fut))
        else:
            log.debug(f"Joining token refresh already in flight for uid={uid}")
        return await asyncio.shield(inflight)

    def _refresh_done(self, uid: str, fut: "asyncio.Future[RefreshSuccess]") -> None:
        self._inflight_refreshes.pop(uid, None)
        # Mark the error as retrieved, every waiter may have been cancelled
        if not fut.cancelled():
            fut.exception()

    def build_refresh_request(self, refresh_token: str) -> httpx.Request:
        body = prepare_token_request(
            "refresh_token",
            client_id=self.google_client_id,
            client_secret=self._google_client_secret,
            refresh_token=refresh_token,
        )
        return httpx.Request(
            "POST",
            GOOGLE_TOKEN_ENDPOINT,
            content=body.encode("utf-8"),
            headers={
                "Content-Type": FORM_CONTENT_TYPE,
                "Accept": "application/json",
                "User-Agent": get_user_agent(type(self).__name__),
            },
        )

    async def _exchange(self, uid: str, send: SendRequest) -> RefreshSuccess:
        refresh_token = await self._fetch_refresh_token(uid)
        response = await send(self.build_refresh_request(refresh_token), RequestContext.internal(uid))
        outcome = classify_refresh_response(response)

        if isinstance(outcome, RefreshSuccess):
            log.info(f"Refreshed access token for uid={uid}, with ttl={outcome.expires_in_seconds}")
            await self._on_access_token_updated(
                uid,
                outcome.access_token,
                outcome.expires_in_seconds,
                outcome.scope,
                outcome.id_token,
            )
            return outcome

        if isinstance(outcome, RefreshRejected):
            # User revoked access or the refresh token expired, retrying will not help
            log.warning(f"Refresh token for uid={uid} was rejected: {outcome.reason.error}")
            await self._on_refresh_token_rejected(uid)
            raise RefreshTokenRejectedError(
                "Could not refresh access token, as refresh token was rejected. "
                f"Response from Google OAuth: {outcome.reason}",
                response=outcome.reason,
                status_code=outcome.status_code,
            )

        log.warning(
            f"Token refresh for uid={uid} failed with status={outcome.status_code}, error={outcome.reason.error}"
        )
        raise RefreshTokenFailedError(
            "Could not refresh access token, as refresh token failed for unknown reason. "
            f"Response from Google OAuth: {outcome.reason}",
            response=outcome.reason,
            status_code=outcome.status_code,
        )
