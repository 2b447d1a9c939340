"""Async API client that runs every request through UserAwareGoogleAuth."""

from typing import Any, Optional

import httpx

from useraware.auth._user_agent import get_user_agent, resolve_client_name
from useraware.auth.context import RequestContext
from useraware.auth.plugin import UserAwareGoogleAuth


class UserAwareAsyncClient:
    """Async httpx client that authorizes each request as a given user.

    Every request passes through the auth plugin's ``before_send`` hook, the
    underlying ``httpx.AsyncClient`` and the ``after_receive`` hook, so a 401 is
    answered with a refresh and a single replay. Calls return the response object.

    Example:
        async with UserAwareAsyncClient(auth, base_url="https://www.googleapis.com") as client:
            response = await client.get("calendar/v3/users/me/calendarList", uid="u1")
            data = response.json()
    """

    def __init__(
        self,
        auth: UserAwareGoogleAuth,
        *,
        client_name: Optional[str] = "auto",
        **kwargs,
    ):
        """Initialize the async client.

        Args:
            auth: The auth plugin holding client credentials and token callbacks
            client_name: Name added to User-Agent. Use "auto" for class name, None for no name.
            **kwargs: Additional arguments passed to the underlying httpx client (e.g. timeout, base_url).
        """
        # Use a custom transport to set the number of retries for connection errors
        kwargs.setdefault("transport", httpx.AsyncHTTPTransport(retries=3))

        headers = kwargs.pop("headers", {})
        headers.setdefault("User-Agent", get_user_agent(resolve_client_name(client_name, self)))

        self.auth = auth
        self._client = httpx.AsyncClient(headers=headers, **kwargs)

    def build_request(self, method: str, url: Any, **kwargs) -> httpx.Request:
        return self._client.build_request(method, url, **kwargs)

    async def send(self, request: httpx.Request, context: RequestContext, *, stream: bool = False) -> httpx.Response:
        """Send a prepared request on behalf of ``context.uid``."""
        # The body is buffered so that the request can be replayed after a refresh
        await request.aread()
        await self.auth.before_send(request, context)
        response = await self._client.send(request, stream=stream)
        return await self.auth.after_receive(request, response, context, self.send)

    async def request(self, method: str, url: Any, *, uid: Optional[str] = None, **kwargs) -> httpx.Response:
        request = self.build_request(method, url, **kwargs)
        return await self.send(request, RequestContext(uid=uid))

    async def get(self, url: Any, *, uid: Optional[str] = None, **kwargs) -> httpx.Response:
        return await self.request("GET", url, uid=uid, **kwargs)

    async def options(self, url: Any, *, uid: Optional[str] = None, **kwargs) -> httpx.Response:
        return await self.request("OPTIONS", url, uid=uid, **kwargs)

    async def head(self, url: Any, *, uid: Optional[str] = None, **kwargs) -> httpx.Response:
        return await self.request("HEAD", url, uid=uid, **kwargs)

    async def post(self, url: Any, *, uid: Optional[str] = None, **kwargs) -> httpx.Response:
        return await self.request("POST", url, uid=uid, **kwargs)

    async def put(self, url: Any, *, uid: Optional[str] = None, **kwargs) -> httpx.Response:
        return await self.request("PUT", url, uid=uid, **kwargs)

    async def patch(self, url: Any, *, uid: Optional[str] = None, **kwargs) -> httpx.Response:
        return await self.request("PATCH", url, uid=uid, **kwargs)

    async def delete(self, url: Any, *, uid: Optional[str] = None, **kwargs) -> httpx.Response:
        return await self.request("DELETE", url, uid=uid, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "UserAwareAsyncClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.aclose()
