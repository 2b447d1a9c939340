"""User-Agent header sent on API calls and on token refreshes."""

import sys
from typing import Optional

import httpx

from useraware.auth import __version__

AUTO_CLIENT_NAME = "auto"

_PRODUCT = f"useraware-google-auth/{__version__}"
_RUNTIME = f"python/{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
_TRANSPORT = f"python-httpx/{httpx.__version__}"


def resolve_client_name(client_name: Optional[str], owner: object) -> Optional[str]:
    """Map the "auto" client name to the class name of ``owner``; other values pass through."""
    if client_name == AUTO_CLIENT_NAME:
        return type(owner).__name__
    return client_name or None


def get_user_agent(client_name: Optional[str] = None) -> str:
    """User-Agent like "useraware-google-auth/1.0.0 python/3.12.1 python-httpx/0.28.1 MyClient"."""
    parts = [_PRODUCT, _RUNTIME, _TRANSPORT]
    if client_name:
        parts.append(client_name)
    return " ".join(parts)
