"""
wirehttp - A byte-exact HTTP client engine.

This package builds HTTP requests exactly as they go on the wire (header
order, Content-Length, multipart encoding), negotiates authentication by
withholding credentials until challenged, and drives a single reusable
connection with optional request pipelining.
"""

__version__ = "1.0.0"

from wirehttp.auth import basic_auth_header
from wirehttp.client import HttpClient
from wirehttp.config import Config
from wirehttp.exceptions import (
    ConnectionFailed,
    ConnectionRefused,
    ConnectionTimedOut,
    MalformedResponse,
    NotConnected,
    ProxyError,
    UnsupportedAuthScheme,
    WireHTTPError,
)
from wirehttp.multipart import FormPart, MultipartEncoder
from wirehttp.request import Request, RequestBuilder
from wirehttp.response import Response

__all__ = [
    "Config",
    "ConnectionFailed",
    "ConnectionRefused",
    "ConnectionTimedOut",
    "FormPart",
    "HttpClient",
    "MalformedResponse",
    "MultipartEncoder",
    "NotConnected",
    "ProxyError",
    "Request",
    "RequestBuilder",
    "Response",
    "UnsupportedAuthScheme",
    "WireHTTPError",
    "basic_auth_header",
    "__version__",
]
