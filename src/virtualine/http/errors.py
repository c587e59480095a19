"""Exceptions raised by the HTTP core.

Transport failures are not exceptions: they are reported through
``Response.diagnostic`` and ``Response.has_error()``.
"""


class HttpClientError(Exception):
    """Base class for errors raised before or after a call, never during it."""


class InvalidMethodError(HttpClientError, ValueError):
    """The HTTP method is not one of GET, POST, PUT, DELETE or PATCH."""


class EncodingError(HttpClientError, ValueError):
    """A request body could not be encoded."""


class ParseError(HttpClientError, ValueError):
    """A response body could not be decoded."""
