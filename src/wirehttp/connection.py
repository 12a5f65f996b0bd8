"""Single-connection management with optional request pipelining.

In lockstep mode (the default) a request is only written once every earlier
response has been read off the wire. In pipelined mode requests are written
immediately and responses are matched to requests strictly in the order the
requests were sent.
"""

import logging
from collections import deque
from typing import Any, Deque, Optional

from wirehttp.exceptions import ConnectionTimedOut, MalformedResponse, NotConnected
from wirehttp.proxy import HttpConnectNegotiator, ProxyChainNegotiator, parse_proxies
from wirehttp.request import Request
from wirehttp.response import Response, ResponseParser
from wirehttp.transport import SocketTransport, Transport

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10


class ConnectionManager:
    """Owns one logical connection to a host, possibly through proxies.

    Attributes:
        pipeline: Write requests ahead of reading earlier responses
        proxies: Proxy chain as given by the caller
        local_host: Local address to bind, if any
        local_port: Local port to bind, if any
        transport: Transport used for all I/O
        negotiator: Negotiator used to traverse the proxy chain
    """

    def __init__(
        self,
        hostname: str,
        port: int = 80,
        ssl: bool = False,
        ssl_version: Optional[str] = None,
        proxies: Any = None,
        local_host: Optional[str] = None,
        local_port: Optional[int] = None,
        transport: Optional[Transport] = None,
        negotiator: Optional[ProxyChainNegotiator] = None,
    ):
        self._hostname = hostname
        self._port = int(port)
        self._ssl = bool(ssl)
        self._ssl_version = ssl_version
        self.proxies = proxies
        self.local_host = local_host
        self.local_port = local_port
        self.transport = transport or SocketTransport()
        self.negotiator = negotiator or HttpConnectNegotiator()
        self.pipeline = False

        self._handle: Any = None
        self._eof = False
        self._parser = ResponseParser()
        self._outstanding: Deque[Request] = deque()
        self._ready: Deque[Response] = deque()

    @property
    def handle(self) -> Any:
        """The transport handle, or None when disconnected."""
        return self._handle

    @property
    def pending(self) -> int:
        """Number of sent requests whose responses have not been returned."""
        return len(self._outstanding) + len(self._ready)

    def is_connected(self) -> bool:
        """Report liveness without touching the transport."""
        return self._handle is not None and not self._eof

    def connect(self, timeout: float = DEFAULT_CONNECT_TIMEOUT) -> Any:
        """Connect to the target, through the proxy chain if one is set.

        An existing live connection is reused. Failures are raised as-is;
        retrying is up to the caller.

        Args:
            timeout: Seconds allowed for each connection step

        Returns:
            Transport handle

        Raises:
            ConnectionRefused: If the first hop refused the connection
            ConnectionTimedOut: If the first hop did not answer in time
            ProxyError: If a proxy could not open the tunnel
        """
        if self.is_connected():
            return self._handle
        if self._handle is not None:
            self.close()

        hops = parse_proxies(self.proxies)
        if hops:
            first = hops[0]
            handle = self.transport.connect(first.host, first.port, timeout, self.local_host, self.local_port)
            try:
                for index, hop in enumerate(hops):
                    if index + 1 < len(hops):
                        next_host, next_port = hops[index + 1].host, hops[index + 1].port
                    else:
                        next_host, next_port = self._hostname, self._port
                    handle = self.negotiator.tunnel(self.transport, handle, hop, next_host, next_port, timeout)
            except Exception:
                self.transport.close(handle)
                raise
        else:
            handle = self.transport.connect(self._hostname, self._port, timeout, self.local_host, self.local_port)

        if self._ssl:
            try:
                handle = self.transport.start_tls(handle, self._hostname, self._ssl_version)
            except Exception:
                self.transport.close(handle)
                raise

        logger.debug(f"Connected to {self._hostname}:{self._port} (ssl={self._ssl}, proxies={len(hops)})")
        self._handle = handle
        self._eof = False
        return handle

    def send(self, request: Request, timeout: float = DEFAULT_CONNECT_TIMEOUT) -> None:
        """Write a request, connecting first if needed.

        In lockstep mode any responses still owed for earlier requests are
        read and queued before the new request is written.

        Args:
            request: Request to send
            timeout: Connect/read timeout in seconds
        """
        if not self.pipeline:
            while self._outstanding and self.is_connected():
                logger.debug("Reading outstanding response before next request")
                self._ready.append(self._read_next(timeout))

        if not self.is_connected():
            self.connect(timeout)

        data = request.to_bytes()
        self.transport.write(self._handle, data)
        self._outstanding.append(request)
        logger.debug(f"Sent {request.method} {request.uri} ({len(data)} bytes)")

    def receive(self, timeout: float = DEFAULT_CONNECT_TIMEOUT) -> Response:
        """Return the response to the oldest request still awaiting one.

        Args:
            timeout: Seconds to wait for each read

        Returns:
            Response with ``request`` set to the request it answers

        Raises:
            ConnectionTimedOut: If the server stopped sending mid-response
            MalformedResponse: If the server sent something unparseable
            NotConnected: If the connection was closed with nothing buffered
        """
        if self._ready:
            return self._ready.popleft()
        return self._read_next(timeout)

    def _read_next(self, timeout: float) -> Response:
        request = self._outstanding.popleft() if self._outstanding else None
        method = request.method if request is not None else 'GET'
        max_body = _read_limit(request)

        while True:
            response = self._parser.next_response(method, eof=self._eof, max_body=max_body)
            if response is not None:
                return self._finish(response, request)
            if self._eof:
                raise MalformedResponse("Connection closed before a complete response was received")
            if self._handle is None:
                raise NotConnected("Connection is closed")

            try:
                data = self.transport.read_once(self._handle, timeout)
            except ConnectionTimedOut:
                # An unframed body ends when the server goes quiet
                if self._parser.buffered:
                    response = self._parser.next_response(method, eof=True, max_body=max_body)
                    if response is not None:
                        self._eof = True
                        return self._finish(response, request)
                raise

            if not data:
                self._eof = True
            else:
                self._parser.feed(data)

    def _finish(self, response: Response, request: Optional[Request]) -> Response:
        response.request = request
        if not response.keep_alive or response.truncated:
            # Nothing more can be read for later requests; the next send reconnects
            logger.debug(f"Server ends the connection after {response.code} (keep_alive={response.keep_alive})")
            self._eof = True
        return response

    def close(self) -> None:
        """Release the transport handle. Safe to call repeatedly.

        Unparsed bytes and requests still awaiting a response belong to the
        released connection and are dropped with it.
        """
        self._parser.clear()
        self._outstanding.clear()
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._eof = False
        self.transport.close(handle)
        logger.debug(f"Closed connection to {self._hostname}:{self._port}")

    def stop(self) -> None:
        """Close and drop every buffered pipeline state."""
        self.close()
        self._ready.clear()


def _read_limit(request: Optional[Request]) -> Optional[int]:
    if request is None:
        return None
    limit = request.opts.get('read_max_data')
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        return None
    return limit
