from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from types import MappingProxyType, SimpleNamespace
from typing import Any, Mapping, Optional, Union

from virtualine.http.errors import ParseError

logger = logging.getLogger(__name__)


def parse_header_block(block: str) -> dict:
    """Parse a raw header block into a dict.

    Each line is split on its first colon and both sides are stripped. Lines
    without a colon, such as the status line, are dropped. Later duplicates win.
    """
    headers = {}
    for line in block.split("\n"):
        name, sep, value = line.partition(":")
        if sep:
            headers[name.strip()] = value.strip()
    return headers


@dataclass(frozen=True)
class Response:
    """The result of one completed, or failed, HTTP call.

    ``diagnostic`` holds the transport error text when the call failed, or the
    verbose transcript when the client runs in verbose mode. ``has_error()``
    only looks at this field; HTTP status codes are left to the caller.

    Header lookups are exact-match: names keep the case they were received with.
    """

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""
    diagnostic: str = ""

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "diagnostic", self.diagnostic or "")

    @classmethod
    def from_header_map(
        cls, status_code: int, headers: Mapping[str, str], body: str, diagnostic: Optional[str] = None
    ) -> Response:
        return cls(status_code, headers, body, diagnostic or "")

    @classmethod
    def from_raw_header_block(
        cls, status_code: int, header_block: str, body: str, diagnostic: Optional[str] = None
    ) -> Response:
        return cls(status_code, parse_header_block(header_block), body, diagnostic or "")

    @classmethod
    def from_headers(
        cls,
        status_code: int,
        headers: Union[str, Mapping[str, str]],
        body: str,
        diagnostic: Optional[str] = None,
    ) -> Response:
        """Build a response from either a raw header block or a header mapping."""
        if isinstance(headers, str):
            return cls.from_raw_header_block(status_code, headers, body, diagnostic)
        return cls.from_header_map(status_code, headers, body, diagnostic)

    def has_error(self) -> bool:
        """True if the transport reported a failure (or a verbose transcript was captured)."""
        return bool(self.diagnostic)

    def json(self, assoc: bool = True) -> Any:
        """Decode the body as JSON.

        Args:
            assoc: Decode JSON objects to dicts. When False, objects become SimpleNamespace
                instances with attribute access.

        Raises:
            ParseError: If the body is not valid JSON
        """
        object_hook = None if assoc else (lambda obj: SimpleNamespace(**obj))
        try:
            return json.loads(self.body, object_hook=object_hook)
        except ValueError as e:
            raise ParseError(f"Response body is not valid JSON: {e}") from e

    def get_json(self, assoc: bool = True) -> Any:
        """Decode the body as JSON, returning None if it cannot be decoded."""
        try:
            return self.json(assoc)
        except ParseError as e:
            logger.debug(f"Could not decode JSON body with status={self.status_code}: {e}")
            return None

    def get_xml(self) -> Optional[ET.Element]:
        """Parse the body as XML, returning None if it cannot be parsed."""
        try:
            return ET.fromstring(self.body)
        except ET.ParseError as e:
            logger.debug(f"Could not parse XML body with status={self.status_code}: {e}")
            return None

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def has_header(self, name: str) -> bool:
        return name in self.headers

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}]>"
