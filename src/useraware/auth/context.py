"""Per-request context carried alongside an outgoing request."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RequestContext:
    """Identity and auth flags for a single request.

    ``uid`` names the user whose credentials apply. ``suppress_auth`` marks the
    token exchange and the replayed request so that neither the bearer header
    nor the refresh logic is applied to them again. Application code should only
    ever set ``uid``.
    """

    uid: Optional[str] = None
    suppress_auth: bool = False

    @classmethod
    def for_user(cls, uid: str) -> "RequestContext":
        return cls(uid=uid)

    @classmethod
    def internal(cls, uid: Optional[str] = None) -> "RequestContext":
        """Context for requests issued by the auth plugin itself."""
        return cls(uid=uid, suppress_auth=True)
