"""Synchronous HTTP client: one Request in, one blocking httpx call, one Response out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import httpx

from virtualine.http._utils import build_query, starts_with
from virtualine.http.errors import InvalidMethodError
from virtualine.http.request import METHODS, Method, Request
from virtualine.http.response import Response

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Virtualine HttpClient/1.0"
DEFAULT_TIMEOUT = 30
MAX_REDIRECTS = 10

HeaderList = List[Tuple[str, str]]


class HttpVersion(str, Enum):
    HTTP_1_1 = "HTTP/1.1"
    HTTP_2 = "HTTP/2"  # negotiated via ALPN, falls back to HTTP/1.1


@dataclass(frozen=True)
class ClientConfig:
    """Settings shared by every call a Client makes.

    Args:
        base_uri: Prefix for relative request targets
        headers: Default headers, overridden by request headers with the same name
        timeout: Total timeout per call, in seconds
        allow_redirects: Follow redirects, at most 10 hops
        proxy: Proxy URL, or None for a direct connection
        verify: Verify TLS certificates
        user_agent: Sent unless a User-Agent header is given explicitly
        http_version: Protocol to use
        verbose: Capture a transcript of each call into ``Response.diagnostic``
    """

    base_uri: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    allow_redirects: bool = True
    proxy: Optional[str] = None
    verify: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    http_version: HttpVersion = HttpVersion.HTTP_2
    verbose: bool = False

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "http_version", HttpVersion(self.http_version))


class Client:
    """Blocking HTTP client.

    Configuration is fixed at construction. The ``with_*`` and ``add_header*``
    methods return a new Client and leave this one untouched, so an instance
    can be shared between threads.

    Each call opens and closes its own connection. Transport failures do not
    raise: the returned Response has status 0 and the error text in
    ``diagnostic``.

    Example:
        client = Client(base_uri="https://api.example.com/", timeout=10)
        response = client.get("items", query={"page": 2})
        if not response.has_error():
            items = response.get_json()
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        **options: Any,
    ):
        """Initialize the client.

        Args:
            config: Complete configuration. Keyword options are applied on top of it.
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
            **options: Any ClientConfig field (base_uri, headers, timeout, ...)
        """
        if config is None:
            config = ClientConfig(**options)
        elif options:
            config = replace(config, **options)
        self._config = config
        self._transport = transport

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _replace(self, **changes: Any) -> Client:
        return Client(replace(self._config, **changes), transport=self._transport)

    def with_base_uri(self, uri: str) -> Client:
        return self._replace(base_uri=uri)

    def with_headers(self, headers: Mapping[str, str]) -> Client:
        return self._replace(headers=headers)

    def add_headers(self, headers: Mapping[str, str]) -> Client:
        return self._replace(headers={**self._config.headers, **headers})

    def add_header(self, key: str, value: str) -> Client:
        return self.add_headers({key: value})

    def with_timeout(self, timeout: float) -> Client:
        return self._replace(timeout=timeout)

    def with_allow_redirects(self, allow_redirects: bool) -> Client:
        return self._replace(allow_redirects=allow_redirects)

    def with_proxy(self, proxy: Optional[str]) -> Client:
        return self._replace(proxy=proxy)

    def with_verify(self, verify: bool) -> Client:
        return self._replace(verify=verify)

    def with_user_agent(self, user_agent: str) -> Client:
        return self._replace(user_agent=user_agent)

    def with_http_version(self, http_version: Union[str, HttpVersion]) -> Client:
        return self._replace(http_version=http_version)

    def with_verbose(self, verbose: bool) -> Client:
        return self._replace(verbose=verbose)

    def get(self, url: str, **options: Any) -> Response:
        return self.request(Method.GET, url, **options)

    def post(self, url: str, **options: Any) -> Response:
        return self.request(Method.POST, url, **options)

    def put(self, url: str, **options: Any) -> Response:
        return self.request(Method.PUT, url, **options)

    def delete(self, url: str, **options: Any) -> Response:
        return self.request(Method.DELETE, url, **options)

    def patch(self, url: str, **options: Any) -> Response:
        return self.request(Method.PATCH, url, **options)

    def request(self, method: Union[str, Method], uri: str, **options: Any) -> Response:
        """Build a Request from options (headers, query, json, form_params, multipart) and send it.

        Raises:
            InvalidMethodError: If method is not GET, POST, PUT, DELETE or PATCH
            EncodingError: If the json option cannot be encoded
        """
        method = method.value if isinstance(method, Method) else method
        if method not in METHODS:
            raise InvalidMethodError(f"Invalid HTTP method: {method!r}")
        return self.send(Request(method, uri, **options))

    def send(self, request: Request) -> Response:
        url = self.build_url(request.uri, request.query)
        headers = self._prepare_headers(request.headers)
        return self._do_send(request.method, url, headers, request.body)

    def build_url(self, uri: str, query: Optional[Mapping[str, Any]] = None) -> str:
        """Resolve a request target against the base URI and append the query string.

        A target that already starts with the base URI (ignoring the scheme) is used
        as is; anything else is appended to the base URI.
        """
        base_uri = self._config.base_uri
        base = _strip_scheme(base_uri)
        if base and starts_with(_strip_scheme(uri), base):
            url = uri
        elif base_uri.endswith("/") and uri.startswith("/"):
            url = base_uri + uri[1:]
        else:
            url = base_uri + uri

        if query:
            url += ("&" if "?" in url else "?") + build_query(query)
        return url

    def _prepare_headers(self, headers: Mapping[str, str]) -> HeaderList:
        merged = {**self._config.headers, **headers}
        return list(merged.items())

    def _do_send(self, method: str, url: str, headers: HeaderList, body: Any) -> Response:
        cfg = self._config
        transcript: Optional[List[str]] = [] if cfg.verbose else None

        if not any(name.lower() == "user-agent" for name, _ in headers):
            headers = [*headers, ("User-Agent", cfg.user_agent)]

        kwargs: Dict[str, Any] = {}
        if method != Method.GET.value and body is not None:
            if isinstance(body, Mapping):
                # httpx writes its own multipart Content-Type with the boundary
                headers = [(name, value) for name, value in headers if name.lower() != "content-type"]
                kwargs["files"] = _multipart_fields(body)
            else:
                kwargs["content"] = body
        if transcript is not None:
            kwargs["extensions"] = {"trace": _trace_to(transcript)}

        logger.debug(f"Sending {method} request to url={url}")
        try:
            # a malformed proxy URL is rejected when the client is built
            http = self._open(transcript)
        except (ValueError, httpx.InvalidURL) as e:
            return _failed(method, url, e, transcript)
        try:
            with http as session:
                resp = session.request(method, url, headers=headers, **kwargs)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            return _failed(method, url, e, transcript)

        logger.debug(f"Got status={resp.status_code} in {method} call to {url}")
        diagnostic = "\n".join(transcript) if transcript is not None else ""
        return Response.from_raw_header_block(resp.status_code, _raw_header_block(resp), resp.text, diagnostic)

    def _open(self, transcript: Optional[List[str]]) -> httpx.Client:
        cfg = self._config
        event_hooks: Dict[str, List[Callable]] = {}
        if transcript is not None:
            event_hooks = {
                "request": [lambda r: _log_request(r, transcript)],
                "response": [lambda r: _log_response(r, transcript)],
            }
        return httpx.Client(
            timeout=cfg.timeout,
            follow_redirects=cfg.allow_redirects,
            max_redirects=MAX_REDIRECTS,
            verify=cfg.verify,
            proxy=cfg.proxy,
            http2=cfg.http_version is HttpVersion.HTTP_2,
            transport=self._transport,
            event_hooks=event_hooks,
        )


def _failed(method: str, url: str, e: Exception, transcript: Optional[List[str]]) -> Response:
    error = str(e) or e.__class__.__name__
    logger.warning(f"Transport error in {method} call to {url}: {error}")
    if transcript is not None:
        transcript.append(f"* {e.__class__.__name__}: {error}")
        return Response.from_header_map(0, {}, "", "\n".join(transcript))
    return Response.from_header_map(0, {}, "", error)


def _strip_scheme(uri: str) -> str:
    return uri.replace("http://", "").replace("https://", "")


def _multipart_fields(fields: Mapping[str, Any]) -> list:
    """Turn a form mapping into httpx ``files`` entries so it is always sent as multipart.

    Bytes, file objects and (filename, content, ...) tuples are uploads; other values
    become plain form fields.
    """
    encoded = []
    for name, value in fields.items():
        if value is None:
            continue
        if isinstance(value, (bytes, tuple)) or hasattr(value, "read"):
            encoded.append((name, value))
        elif isinstance(value, bool):
            encoded.append((name, (None, "1" if value else "0")))
        else:
            encoded.append((name, (None, str(value))))
    return encoded


def _raw_header_block(response: httpx.Response) -> str:
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}"]
    lines.extend(f"{name.decode('latin-1')}: {value.decode('latin-1')}" for name, value in response.headers.raw)
    return "\r\n".join(lines)


def _trace_to(transcript: List[str]) -> Callable[[str, dict], None]:
    def trace(event_name: str, info: dict) -> None:
        if event_name.endswith(".failed"):
            transcript.append(f"* {event_name}: {info.get('exception')!r}")
        else:
            transcript.append(f"* {event_name}")

    return trace


def _log_request(request: httpx.Request, transcript: List[str]) -> None:
    transcript.append(f"> {request.method} {request.url}")
    transcript.extend(f"> {name.decode('latin-1')}: {value.decode('latin-1')}" for name, value in request.headers.raw)


def _log_response(response: httpx.Response, transcript: List[str]) -> None:
    transcript.append(f"< {response.http_version} {response.status_code} {response.reason_phrase}")
    transcript.extend(f"< {name.decode('latin-1')}: {value.decode('latin-1')}" for name, value in response.headers.raw)
