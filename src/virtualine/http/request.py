from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from virtualine.http.body import BodySpec, FormBody, JsonBody, MultipartBody, body_from_options

CONTENT_TYPE = "Content-Type"


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


METHODS = frozenset(m.value for m in Method)


class Request:
    """An outgoing HTTP call, independent of any transport.

    Options mirror the ones accepted by ``Client.request``:

    - headers: mapping of headers, applied after the body Content-Type so explicit headers win
    - query: mapping of query parameters, appended to the URL when the request is sent
    - json: value sent as JSON
    - form_params: mapping sent as application/x-www-form-urlencoded
    - multipart: mapping sent as multipart/form-data

    Only the first of json, form_params and multipart (in that order) is used.

    Example:
        request = Request("POST", "services/42/reinstall", json={"actionid": "7"})
        request.set_header("X-Trace", "abc")
    """

    def __init__(
        self,
        method: Union[str, Method],
        uri: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        query: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        form_params: Optional[Mapping[str, Any]] = None,
        multipart: Optional[Mapping[str, Any]] = None,
    ):
        self._method = method.value if isinstance(method, Method) else method
        self._uri = uri
        self._headers: Dict[str, str] = {}
        self._body: Union[str, bytes, Mapping[str, Any], None] = None
        self._query: Dict[str, Any] = dict(query) if query else {}

        body_spec = body_from_options({"json": json, "form_params": form_params, "multipart": multipart})
        if body_spec is not None:
            self.set_body_spec(body_spec)

        if headers:
            for name, value in headers.items():
                self.set_header(name, value)

    @classmethod
    def from_options(cls, method: Union[str, Method], uri: str, options: Optional[Mapping[str, Any]] = None) -> Request:
        """Build a request from an option dict. Unrecognized keys are ignored."""
        options = options or {}
        return cls(
            method,
            uri,
            headers=options.get("headers"),
            query=options.get("query"),
            json=options.get("json"),
            form_params=options.get("form_params"),
            multipart=options.get("multipart"),
        )

    def set_uri(self, uri: str) -> Request:
        self._uri = uri
        return self

    def set_header(self, name: str, value: str) -> Request:
        self._headers[name] = value
        return self

    def add_headers(self, headers: Mapping[str, str]) -> Request:
        self._headers.update(headers)
        return self

    def remove_header(self, name: str) -> Request:
        self._headers.pop(name, None)
        return self

    def clear_headers(self) -> Request:
        self._headers = {}
        return self

    def get_header(self, name: str) -> str:
        """Return the header value, or an empty string if it is not set."""
        return self._headers.get(name, "")

    def set_body(self, body: Union[str, bytes, Mapping[str, Any], None]) -> Request:
        """Set the body as is, without touching Content-Type.

        A mapping is sent as multipart form data.
        """
        self._body = body
        return self

    def set_body_spec(self, spec: BodySpec) -> Request:
        """Encode ``spec`` as the body and set its Content-Type, replacing any previous body."""
        payload = spec.encode()
        if spec.content_type is not None:
            self.set_header(CONTENT_TYPE, spec.content_type)
        return self.set_body(payload)

    def set_json_body(self, body: Any) -> Request:
        """
        Set the body as JSON.
        :raises EncodingError: if the value cannot be encoded
        """
        return self.set_body_spec(JsonBody(body))

    def set_form_body(self, body: Mapping[str, Any]) -> Request:
        return self.set_body_spec(FormBody(body))

    def set_multipart_body(self, body: Mapping[str, Any]) -> Request:
        return self.set_body_spec(MultipartBody(body))

    @property
    def method(self) -> str:
        return self._method

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    @property
    def query(self) -> Dict[str, Any]:
        return dict(self._query)

    @property
    def body(self) -> Union[str, bytes, Mapping[str, Any], None]:
        return self._body

    def __repr__(self) -> str:
        return f"<Request [{self._method} {self._uri}]>"
