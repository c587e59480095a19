"""Token authentication for the Virtualine reseller API."""

import base64
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Dict, Optional

# The token changes every UTC hour
TOKEN_TIME_FORMAT = "%y-%m-%d %H"


def make_token(api_key: str, username: str, now: Optional[datetime] = None) -> str:
    """Derive the request token for the hour containing ``now`` (UTC).

    The token is the base64 encoding of the hex HMAC-SHA256 digest of the API key,
    keyed with ``"<username>:<yy-mm-dd HH>"``.
    """
    now = now or datetime.now(tz=timezone.utc)
    key = f"{username}:{now.astimezone(timezone.utc).strftime(TOKEN_TIME_FORMAT)}"
    digest = hmac.new(key.encode(), api_key.encode(), hashlib.sha256).hexdigest()
    return base64.b64encode(digest.encode()).decode()


class VirtualineTokenAuth:
    """Produces the ``token`` and ``username`` headers sent with each request."""

    def __init__(self, api_key: str, username: str) -> None:
        self._api_key = api_key
        self._username = username

    @property
    def username(self) -> str:
        return self._username

    def headers(self, now: Optional[datetime] = None) -> Dict[str, str]:
        return {"token": make_token(self._api_key, self._username, now), "username": self._username}
