"""HTTP client facade tying request building, auth and the connection together."""

import logging
from typing import Any, Dict, Mapping, Optional

from wirehttp.auth.basic import basic_auth_header
from wirehttp.auth.negotiator import AuthNegotiator, AuthState
from wirehttp.config import CONFIG_TYPES, Config
from wirehttp.connection import ConnectionManager
from wirehttp.proxy import ProxyChainNegotiator
from wirehttp.request import Request, RequestBuilder
from wirehttp.response import Response
from wirehttp.transport import Transport
from wirehttp.utils.text import RandomStringProvider, SecretsRandom

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20
JUNK_PATH_LENGTH = 12


class HttpClient:
    """Client for one host over one connection.

    The target host, port and TLS settings are fixed at construction and are
    not exposed as attributes; only the request and connection
    methods use them.

    Example:
        >>> client = HttpClient("10.0.0.5", 8080, username="admin", password="secret")
        >>> request = client.request_cgi({'uri': '/admin', 'method': 'GET'})
        >>> response = client.send_recv(request)
        >>> response.code
        200

    Attributes:
        context: Free-form mapping carried for the caller
        junk_pipeline: Throwaway requests to send ahead of each request when
            pipelining
        rand: Random-string provider used for boundaries and junk paths
    """

    def __init__(
        self,
        hostname: str,
        port: int = 80,
        context: Optional[Dict[str, Any]] = None,
        ssl: bool = False,
        ssl_version: Optional[str] = None,
        proxies: Any = None,
        username: str = '',
        password: str = '',
        local_host: Optional[str] = None,
        local_port: Optional[int] = None,
        transport: Optional[Transport] = None,
        proxy_negotiator: Optional[ProxyChainNegotiator] = None,
        rand: Optional[RandomStringProvider] = None,
    ):
        self._hostname = hostname
        self._port = int(port)
        self._ssl = bool(ssl)

        self.context = {} if context is None else context
        self.junk_pipeline = 0
        self.rand = rand or SecretsRandom()

        self._config = Config()
        self._builder = RequestBuilder(hostname, self._port, self._ssl, self._config, self.rand)
        self._auth = AuthNegotiator(username, password)
        self._connection = ConnectionManager(
            hostname,
            self._port,
            ssl=self._ssl,
            ssl_version=ssl_version,
            proxies=proxies,
            local_host=local_host,
            local_port=local_port,
            transport=transport,
            negotiator=proxy_negotiator,
        )

    # Configuration

    @property
    def config(self) -> Config:
        """Read-only view of the stored options (change with set_config)."""
        return self._config

    @property
    def config_types(self) -> Dict[str, str]:
        return dict(CONFIG_TYPES)

    def set_config(self, partial: Optional[Mapping] = None) -> Dict[str, Any]:
        """Merge options into the client configuration.

        Args:
            partial: Options to merge; wins over stored values. Never
                modified, and never shared with the stored configuration.

        Returns:
            Copy of the resulting configuration
        """
        return self._config.merge(partial)

    @property
    def username(self) -> str:
        return self._auth.username

    @username.setter
    def username(self, value: str) -> None:
        self._auth.username = value

    @property
    def password(self) -> str:
        return self._auth.password

    @password.setter
    def password(self, value: str) -> None:
        self._auth.password = value

    @property
    def has_creds(self) -> bool:
        return bool(self.username)

    @property
    def auth_state(self) -> AuthState:
        return self._auth.state

    # Connection

    @property
    def pipeline(self) -> bool:
        return self._connection.pipeline

    @pipeline.setter
    def pipeline(self, value: bool) -> None:
        self._connection.pipeline = bool(value)

    @property
    def pipelining(self) -> bool:
        """Whether requests may be written ahead of earlier responses."""
        return self._connection.pipeline

    @property
    def proxies(self) -> Any:
        return self._connection.proxies

    @property
    def local_host(self) -> Optional[str]:
        return self._connection.local_host

    @property
    def local_port(self) -> Optional[int]:
        return self._connection.local_port

    @property
    def conn(self) -> Any:
        """Current transport handle, or None."""
        return self._connection.handle

    def is_connected(self) -> bool:
        return self._connection.is_connected()

    def connect(self, timeout: float = 10) -> Any:
        """Connect to the target host.

        Args:
            timeout: Seconds to wait for the connection

        Returns:
            Transport handle

        Raises:
            ConnectionRefused: If the host refused the connection
            ConnectionTimedOut: If the timeout expired
        """
        return self._connection.connect(timeout)

    def close(self) -> None:
        self._connection.close()

    def stop(self) -> None:
        self._connection.stop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    # Requests

    def request_raw(self, opts: Optional[Mapping] = None) -> Request:
        """Build a minimally augmented request (see RequestBuilder.request_raw)."""
        return self._builder.request_raw(opts)

    def request_cgi(self, opts: Optional[Mapping] = None) -> Request:
        """Build a configuration-merged request (see RequestBuilder.request_cgi)."""
        return self._builder.request_cgi(opts)

    @staticmethod
    def basic_auth_header(username: str, password: str) -> str:
        return basic_auth_header(username, password)

    def send_request(self, request: Request, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Write a request without waiting for its response.

        When pipelining with ``junk_pipeline`` set, that many throwaway GET
        requests are written first; their responses are skipped by
        :meth:`read_response`.

        Args:
            request: Request to send
            timeout: Connect/read timeout in seconds
        """
        if self.pipeline and self.junk_pipeline > 0:
            for _ in range(self.junk_pipeline):
                self._connection.send(self._junk_request(), timeout)
        self._connection.send(request, timeout)

    def read_response(self, timeout: float = DEFAULT_TIMEOUT) -> Response:
        """Read the next response, in the order requests were sent.

        Args:
            timeout: Seconds to wait for each read

        Returns:
            Response whose ``request`` is the request it answers
        """
        while True:
            response = self._connection.receive(timeout)
            if response.request is not None and response.request.opts.get('junk'):
                logger.debug(f"Discarding junk pipeline response {response.code}")
                continue
            return response

    def send_recv(self, request: Request, timeout: float = DEFAULT_TIMEOUT, persist: bool = False) -> Response:
        """Send a request and return its response, negotiating auth if challenged.

        If the server answers 401 with a supported challenge and credentials
        are available, the request is resent once with an Authorization
        header and that second response is returned. The resend goes over
        the same connection unless the server closed it after the 401.

        Args:
            request: Request to send
            timeout: Connect/read timeout in seconds
            persist: Keep the connection open afterwards; the request's
                ``persist`` option also turns this on

        Returns:
            Final response
        """
        persist = persist or bool(request.opts.get('persist'))
        self._auth.begin(request)
        try:
            response = self._send_recv(request, timeout)
            retry = self._auth.retry_request(request, response)
            if retry is not None:
                response = self._send_recv(retry, timeout)
                self._auth.complete(response)
        finally:
            if not persist:
                self.close()
        return response

    def _send_recv(self, request: Request, timeout: float) -> Response:
        self.send_request(request, timeout)
        response = self.read_response(timeout)
        logger.debug(f"{request.method} {request.uri} -> {response.code} {response.message}")
        return response

    def _junk_request(self) -> Request:
        return Request(
            method='GET',
            uri='/' + self.rand.alnum(JUNK_PATH_LENGTH),
            headers=(('Host', self._builder.host_header()),),
            opts={'junk': True},
        )
