"""Exception hierarchy for wirehttp.

Connection-level failures are raised unmodified to the caller and never
retried inside the library. Request building and multipart encoding never
raise; they degrade to documented defaults instead.
"""

from typing import Optional


class WireHTTPError(Exception):
    """Base class for every error raised by wirehttp."""


class ConnectionFailed(WireHTTPError):
    """The transport could not establish or keep a connection.

    Attributes:
        host: Host that was being contacted
        port: Port that was being contacted
    """

    def __init__(self, message: str, host: Optional[str] = None, port: Optional[int] = None):
        super().__init__(message)
        self.host = host
        self.port = port


class ConnectionRefused(ConnectionFailed):
    """The remote end actively refused the connection."""


class ConnectionTimedOut(ConnectionFailed):
    """Connecting or reading did not complete within the timeout."""


class ProxyError(ConnectionFailed):
    """A proxy in the configured chain could not be traversed."""


class NotConnected(WireHTTPError):
    """An I/O operation was attempted on a closed connection."""


class MalformedResponse(WireHTTPError):
    """The bytes received from the server are not a valid HTTP response."""


class UnsupportedAuthScheme(WireHTTPError):
    """The server asked for an authentication scheme that is not implemented.

    Attributes:
        scheme: Scheme token from the WWW-Authenticate challenge
    """

    def __init__(self, scheme: str):
        super().__init__(f"Unsupported authentication scheme: {scheme}")
        self.scheme = scheme
