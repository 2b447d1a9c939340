"""Google token endpoint payloads and classification of refresh responses."""

import logging
from dataclasses import dataclass
from typing import Optional, Union

import httpx
from pydantic import BaseModel, ValidationError

log = logging.getLogger(__name__)

INVALID_GRANT = "invalid_grant"
INVALID_TOKEN_RESPONSE = "invalid_token_response"
UNEXPECTED_STATUS = "unexpected_status"


class GoogleRefreshTokenResponse(BaseModel):
    access_token: str
    expires_in: int
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    token_type: str
    id_token: Optional[str] = None


class GoogleRefreshTokenErrorResponse(BaseModel):
    """OAuth2 error body, see RFC 6749 section 5.2."""

    error: str
    error_description: Optional[str] = None
    error_uri: Optional[str] = None


@dataclass(frozen=True)
class RefreshSuccess:
    access_token: str
    expires_in_seconds: int
    scope: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @classmethod
    def from_token_response(cls, token: GoogleRefreshTokenResponse) -> "RefreshSuccess":
        return cls(
            access_token=token.access_token,
            expires_in_seconds=token.expires_in,
            scope=token.scope,
            id_token=token.id_token,
            refresh_token=token.refresh_token,
        )


@dataclass(frozen=True)
class RefreshRejected:
    """The refresh token will never work again."""

    reason: GoogleRefreshTokenErrorResponse
    status_code: int


@dataclass(frozen=True)
class RefreshFailed:
    reason: GoogleRefreshTokenErrorResponse
    status_code: int


RefreshOutcome = Union[RefreshSuccess, RefreshRejected, RefreshFailed]


def _parse_error_body(response: httpx.Response) -> GoogleRefreshTokenErrorResponse:
    """Parse an OAuth2 error body, falling back to a synthetic error when the shape is unexpected."""
    try:
        return GoogleRefreshTokenErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        log.debug(f"Could not parse error body from token endpoint, status={response.status_code}")
        return GoogleRefreshTokenErrorResponse(
            error=UNEXPECTED_STATUS,
            error_description=f"status={response.status_code}, body={response.text!r}",
        )


def classify_refresh_response(response: httpx.Response) -> RefreshOutcome:
    """Turn a token endpoint response into a refresh outcome.

    - 200 with a token body: success
    - 400 with ``invalid_grant``: rejected, the refresh token is unusable
    - 400 with any other error, any other status, or a malformed 200 body: failed
    """
    status = response.status_code
    if status == httpx.codes.OK:
        try:
            token = GoogleRefreshTokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            return RefreshFailed(
                reason=GoogleRefreshTokenErrorResponse(error=INVALID_TOKEN_RESPONSE, error_description=str(e)),
                status_code=status,
            )
        return RefreshSuccess.from_token_response(token)

    reason = _parse_error_body(response)
    if status == httpx.codes.BAD_REQUEST and reason.error == INVALID_GRANT:
        return RefreshRejected(reason=reason, status_code=status)
    return RefreshFailed(reason=reason, status_code=status)
