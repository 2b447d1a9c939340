import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

ANY_AUTH_TYPE = Union[str, os.PathLike, tuple, "GoogleClientCredentials", dict, None]

# Google client secret files wrap the credentials in one of these keys
CLIENT_SECRETS_KEYS = ["web", "installed"]

REQUIRED_CLIENT_SECRETS_KEYS = [
    "client_id",
    "client_secret",
]


@dataclass
class GoogleClientCredentials:
    client_id: str
    client_secret: str


def parse_client_secrets(path: Union[str, os.PathLike, dict]) -> GoogleClientCredentials:
    if isinstance(path, dict):
        secrets = path
    else:
        try:
            secrets = json.loads(Path(path).read_text())
        except FileNotFoundError:
            raise FileNotFoundError(f"Could not find Google client secrets file at {path}") from None

    if not isinstance(secrets, dict):
        raise AttributeError(f"Could not json dict from {path}")

    for wrapper in CLIENT_SECRETS_KEYS:
        if isinstance(secrets.get(wrapper), dict):
            secrets = secrets[wrapper]
            break

    for k in REQUIRED_CLIENT_SECRETS_KEYS:
        if k not in secrets:
            raise KeyError(f"Missing key {k} in client secrets")

    return GoogleClientCredentials(
        client_id=secrets["client_id"],
        client_secret=secrets["client_secret"],
    )


def get_credentials_from_env() -> tuple[Optional[str], Optional[str]]:
    creds = os.getenv("GOOGLE_CLIENT_CREDENTIALS")
    if creds:
        client_credentials = parse_client_secrets(creds)
        return client_credentials.client_id, client_credentials.client_secret

    return os.getenv("GOOGLE_CLIENT_ID"), os.getenv("GOOGLE_CLIENT_SECRET")


def resolve_client_credentials(
    auth: ANY_AUTH_TYPE = None, client_id: Optional[str] = None, client_secret: Optional[str] = None
) -> tuple[Optional[str], Optional[str]]:
    has_credentials_tuple = client_id is not None and client_secret is not None

    if has_credentials_tuple:
        if auth is not None:
            raise ValueError("Choose either auth or client_id+client_secret")

    elif isinstance(auth, tuple):
        if len(auth) != 2:
            raise ValueError("Credentials tuple must be tuple of (client_id, client_secret)")
        client_id, client_secret = auth
    elif isinstance(auth, GoogleClientCredentials):
        client_id = auth.client_id
        client_secret = auth.client_secret
    elif isinstance(auth, (dict, str, os.PathLike)):
        if isinstance(auth, (str, os.PathLike)) and not str(auth).endswith(".json"):
            raise ValueError(f"Bad client secrets file, must be json: {auth}")
        creds = parse_client_secrets(auth)
        client_id = creds.client_id
        client_secret = creds.client_secret
    elif auth is not None:
        raise ValueError(f"Unsupported auth type: {type(auth)}")

    if not client_id and not client_secret:
        client_id, client_secret = get_credentials_from_env()

    return client_id, client_secret
