"""Small synchronous HTTP core: Request, Response and Client."""

from virtualine.http.body import BodySpec, FormBody, JsonBody, MultipartBody, RawBody
from virtualine.http.client import DEFAULT_USER_AGENT, MAX_REDIRECTS, Client, ClientConfig, HttpVersion
from virtualine.http.errors import EncodingError, HttpClientError, InvalidMethodError, ParseError
from virtualine.http.request import Method, Request
from virtualine.http.response import Response

__all__ = [
    "BodySpec",
    "Client",
    "ClientConfig",
    "DEFAULT_USER_AGENT",
    "EncodingError",
    "FormBody",
    "HttpClientError",
    "HttpVersion",
    "InvalidMethodError",
    "JsonBody",
    "MAX_REDIRECTS",
    "Method",
    "MultipartBody",
    "ParseError",
    "RawBody",
    "Request",
    "Response",
]
