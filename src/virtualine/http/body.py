"""Request body specifications.

A body is exactly one of the variants below. Each variant knows how to encode
its payload and which ``Content-Type`` goes with it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Optional, Union

from virtualine.http._utils import build_query
from virtualine.http.errors import EncodingError
from virtualine.serde import serialize_body

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
MULTIPART_CONTENT_TYPE = "multipart/form-data"


@dataclass(frozen=True)
class JsonBody:
    value: Any
    content_type: ClassVar[Optional[str]] = JSON_CONTENT_TYPE

    def encode(self) -> str:
        try:
            return json.dumps(serialize_body(self.value), separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError, RecursionError) as e:
            raise EncodingError(f"Could not encode request body as JSON: {e}") from e


@dataclass(frozen=True)
class FormBody:
    fields: Mapping[str, Any]
    content_type: ClassVar[Optional[str]] = FORM_CONTENT_TYPE

    def encode(self) -> str:
        return build_query(self.fields)


@dataclass(frozen=True)
class MultipartBody:
    """Form fields left as a mapping; the transport encodes them and picks the boundary."""

    fields: Mapping[str, Any]
    content_type: ClassVar[Optional[str]] = MULTIPART_CONTENT_TYPE

    def encode(self) -> dict:
        return dict(self.fields)


@dataclass(frozen=True)
class RawBody:
    """Pre-encoded content sent as is. Sets no Content-Type."""

    content: Union[str, bytes, Mapping[str, Any], None]
    content_type: ClassVar[Optional[str]] = None

    def encode(self) -> Union[str, bytes, Mapping[str, Any], None]:
        return self.content


BodySpec = Union[JsonBody, FormBody, MultipartBody, RawBody]

# Only the first option present is consulted.
_OPTION_PRIORITY = (("json", JsonBody), ("form_params", FormBody), ("multipart", MultipartBody))


def body_from_options(options: Mapping[str, Any]) -> Optional[BodySpec]:
    """Pick the body variant from ``json``, ``form_params`` or ``multipart`` options.

    A key whose value is None counts as absent.
    """
    for key, variant in _OPTION_PRIORITY:
        value = options.get(key)
        if value is not None:
            return variant(value)
    return None
