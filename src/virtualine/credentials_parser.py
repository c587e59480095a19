import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

ANY_AUTH_TYPE = Union[str, os.PathLike, tuple, "ApiCredentials", dict, None]

REQUIRED_CREDENTIALS_FILE_KEYS = [
    "apiKey",
    "username",
]


@dataclass
class ApiCredentials:
    api_key: str
    username: str


def parse_credentials(path: Union[str, os.PathLike, dict]) -> ApiCredentials:
    if isinstance(path, dict):
        credentials = path
    else:
        try:
            credentials = json.loads(Path(path).read_text())
        except FileNotFoundError:
            raise FileNotFoundError(f"Could not find Api Credentials file at {path}") from None

    if not isinstance(credentials, dict):
        raise AttributeError(f"Could not json dict from {path}")

    for k in REQUIRED_CREDENTIALS_FILE_KEYS:
        if k not in credentials:
            raise KeyError(f"Missing key {k} in credentials file")

    return ApiCredentials(
        api_key=credentials.get("apiKey"),
        username=credentials.get("username"),
    )


def get_credentials_from_env() -> tuple[Optional[str], Optional[str]]:
    creds = os.getenv("VIRTUALINE_CREDENTIALS")
    if creds:
        api_credentials = parse_credentials(creds)
        return api_credentials.api_key, api_credentials.username

    return os.getenv("VIRTUALINE_API_KEY"), os.getenv("VIRTUALINE_USERNAME")


def resolve_credentials(
    auth: ANY_AUTH_TYPE = None, api_key: Optional[str] = None, username: Optional[str] = None
) -> tuple[Optional[str], Optional[str]]:
    """Resolve (api_key, username) from the first source that provides them.

    Resolution order:
    1. Explicit api_key + username
    2. auth: (api_key, username) tuple, ApiCredentials, dict or path to a json credentials file
    3. VIRTUALINE_CREDENTIALS (path to a json credentials file)
    4. VIRTUALINE_API_KEY + VIRTUALINE_USERNAME
    """
    has_credentials_tuple = api_key is not None and username is not None

    if has_credentials_tuple:
        if auth is not None:
            raise ValueError("Choose either auth or api_key+username")

    elif isinstance(auth, tuple):
        if len(auth) != 2:
            raise ValueError("Credentials tuple must be tuple of (api_key, username)")
        api_key, username = auth
    elif isinstance(auth, ApiCredentials):
        api_key = auth.api_key
        username = auth.username
    elif isinstance(auth, dict):
        creds = parse_credentials(auth)
        api_key = creds.api_key
        username = creds.username
    elif isinstance(auth, (str, os.PathLike)):
        path = str(auth)
        if not path.endswith(".json"):
            raise ValueError(f"Bad auth credentials file, must be json: {path}")
        creds = parse_credentials(auth)
        api_key = creds.api_key
        username = creds.username
    elif auth is not None:
        raise ValueError(f"Unsupported auth type: {type(auth)}")

    if not api_key and not username:
        api_key, username = get_credentials_from_env()

    return api_key, username
