"""Transport contract and the default socket implementation.

The connection layer only talks to a :class:`Transport`; everything that
touches sockets, DNS or TLS lives behind it so tests can swap in a scripted
fake.
"""

import logging
import socket
import ssl
from abc import ABC, abstractmethod
from typing import Any, Optional

from wirehttp.exceptions import ConnectionFailed, ConnectionRefused, ConnectionTimedOut

logger = logging.getLogger(__name__)

RECV_BUFFER_SIZE = 4096

SSL_VERSIONS = {
    'TLS1.2': ssl.TLSVersion.TLSv1_2,
    'TLS1.3': ssl.TLSVersion.TLSv1_3,
}


class Transport(ABC):
    """Byte-level I/O primitives used by the connection manager.

    A handle is whatever object the implementation needs to identify an open
    connection; callers treat it as opaque.
    """

    @abstractmethod
    def connect(
        self,
        host: str,
        port: int,
        timeout: float,
        local_host: Optional[str] = None,
        local_port: Optional[int] = None,
    ) -> Any:
        """Open a connection.

        Args:
            host: Host name or address
            port: TCP port
            timeout: Seconds to wait for the connection to be established
            local_host: Optional local address to bind
            local_port: Optional local port to bind

        Returns:
            Connection handle

        Raises:
            ConnectionRefused: If the peer refused the connection
            ConnectionTimedOut: If the timeout expired
            ConnectionFailed: For any other connection failure
        """
        pass

    @abstractmethod
    def write(self, handle: Any, data: bytes) -> None:
        """Write all bytes to the connection."""
        pass

    @abstractmethod
    def read_once(self, handle: Any, timeout: Optional[float] = None) -> bytes:
        """Read whatever is available.

        Returns:
            Received bytes, or ``b""`` when the peer closed the stream

        Raises:
            ConnectionTimedOut: If nothing arrived within the timeout
        """
        pass

    @abstractmethod
    def close(self, handle: Any) -> None:
        """Close the connection. Must tolerate already-closed handles."""
        pass

    def start_tls(self, handle: Any, server_hostname: str, ssl_version: Optional[str] = None) -> Any:
        """Upgrade a connected handle to TLS and return the new handle."""
        raise ConnectionFailed("TLS is not supported by this transport")


class SocketTransport(Transport):
    """Transport backed by the standard library ``socket`` and ``ssl`` modules.

    Certificate verification is disabled: the client talks to arbitrary
    hosts, often by address, where verification cannot succeed.
    """

    def connect(self, host, port, timeout, local_host=None, local_port=None):
        source = None
        if local_host or local_port:
            source = (local_host or '', int(local_port or 0))

        logger.debug(f"Connecting to {host}:{port} (timeout {timeout}s)")
        try:
            return socket.create_connection((host, int(port)), timeout=timeout, source_address=source)
        except ConnectionRefusedError as e:
            raise ConnectionRefused(f"Connection refused by {host}:{port}", host, port) from e
        except socket.timeout as e:
            raise ConnectionTimedOut(f"Connection to {host}:{port} timed out after {timeout}s", host, port) from e
        except OSError as e:
            raise ConnectionFailed(f"Could not connect to {host}:{port}: {e}", host, port) from e

    def write(self, handle, data):
        try:
            handle.sendall(data)
        except socket.timeout as e:
            raise ConnectionTimedOut("Timed out while sending request") from e
        except OSError as e:
            raise ConnectionFailed(f"Write failed: {e}") from e

    def read_once(self, handle, timeout=None):
        if timeout is not None:
            handle.settimeout(timeout)
        try:
            return handle.recv(RECV_BUFFER_SIZE)
        except socket.timeout as e:
            raise ConnectionTimedOut("Timed out waiting for response data") from e
        except OSError as e:
            raise ConnectionFailed(f"Read failed: {e}") from e

    def close(self, handle):
        try:
            handle.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already disconnected by the peer
            pass
        handle.close()

    def start_tls(self, handle, server_hostname, ssl_version=None):
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

        pinned = SSL_VERSIONS.get(ssl_version or '')
        if pinned is not None:
            context.minimum_version = pinned
            context.maximum_version = pinned

        try:
            return context.wrap_socket(handle, server_hostname=server_hostname)
        except socket.timeout as e:
            raise ConnectionTimedOut(f"TLS handshake with {server_hostname} timed out") from e
        except (ssl.SSLError, OSError) as e:
            raise ConnectionFailed(f"TLS handshake with {server_hostname} failed: {e}") from e
