"""Request model and byte-exact request construction."""

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from wirehttp.config import Config
from wirehttp.http.headers import find_header, format_headers, to_header_list
from wirehttp.multipart import MultipartEncoder
from wirehttp.utils.text import RandomStringProvider, form_urlencode, stringify

logger = logging.getLogger(__name__)

FORM_URLENCODED = "application/x-www-form-urlencoded"
BODYLESS_METHODS = ('GET', 'HEAD')


@dataclass(frozen=True)
class Request:
    """A fully built HTTP request.

    Attributes:
        method: Request method (sent as-is)
        uri: Request target, including any query string
        version: Protocol version without the ``HTTP/`` prefix
        headers: Ordered (name, value) pairs
        body: Body bytes
        raw_headers: Pre-formatted header text appended after ``headers``
        opts: Effective options the request was built from
    """

    method: str
    uri: str
    version: str = '1.1'
    headers: Tuple[Tuple[str, str], ...] = ()
    body: bytes = b''
    raw_headers: str = ''
    opts: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def to_bytes(self) -> bytes:
        """Serialize to the exact bytes written on the wire."""
        out = bytearray(f"{self.method} {self.uri} HTTP/{self.version}\r\n".encode('utf-8'))
        out += format_headers(self.headers)
        if self.raw_headers:
            raw = self.raw_headers
            if not raw.endswith("\r\n"):
                raw += "\r\n"
            out += raw.encode('utf-8')
        out += b"\r\n"
        out += self.body
        return bytes(out)

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def __str__(self) -> str:
        # latin-1 maps every byte to one character, so binary bodies survive
        return self.to_bytes().decode('latin-1')

    def header(self, name: str) -> Optional[str]:
        """Return the first value of a header, case-insensitively."""
        return find_header(self.headers, name)

    def with_header(self, name: str, value: str) -> "Request":
        """Return a copy of this request with one header appended."""
        return replace(self, headers=self.headers + ((name, value),))


def _to_body(data: Any) -> bytes:
    if data is None:
        return b''
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    return stringify(data).encode('utf-8')


def build_uri(uri: Any, query: Any = None, vars_get: Any = None) -> str:
    """Append a raw query string and encoded GET variables to a path.

    Args:
        uri: Resource path, possibly with an existing query string
        query: Raw query string appended verbatim
        vars_get: Mapping or pairs encoded with form escaping

    Returns:
        Request target
    """
    target = stringify(uri) or '/'
    extra = [piece for piece in (stringify(query), form_urlencode(vars_get)) if piece]
    if not extra:
        return target
    separator = '&' if '?' in target else '?'
    return target + separator + '&'.join(extra)


class RequestBuilder:
    """Builds raw and CGI-style requests for one target host.

    Building never performs I/O and never raises on odd option values; the
    only source of variation is the random-string provider used for
    multipart boundaries.
    """

    def __init__(
        self,
        hostname: str,
        port: int = 80,
        ssl: bool = False,
        config: Optional[Config] = None,
        rand: Optional[RandomStringProvider] = None,
    ):
        self._hostname = hostname
        self._port = port
        self._ssl = ssl
        self.config = config if config is not None else Config()
        self.encoder = MultipartEncoder(rand)

    def host_header(self, vhost: Any = None) -> str:
        """Value of the Host header: vhost or hostname, with any non-default port."""
        host = stringify(vhost) or self._hostname
        default_port = 443 if self._ssl else 80
        if self._port and int(self._port) != default_port:
            return f"{host}:{self._port}"
        return host

    def request_raw(self, opts: Optional[Mapping] = None) -> Request:
        """Build a request from explicit method/uri/data/headers only.

        Only the protocol version and a Host header (unless one is given) are
        added. No User-Agent, Content-Type or Content-Length is computed.

        Args:
            opts: Per-call options layered over the stored configuration

        Returns:
            Request object
        """
        opts = self.config.layered(opts)
        headers = to_header_list(opts.get('headers'))
        if find_header(headers, 'Host') is None:
            headers.insert(0, ('Host', self.host_header(opts.get('vhost'))))

        return Request(
            method=stringify(opts.get('method')) or 'GET',
            uri=stringify(opts.get('uri')) or '/',
            version=stringify(opts.get('version')) or '1.1',
            headers=tuple(headers),
            body=_to_body(opts.get('data')),
            raw_headers=stringify(opts.get('raw_headers')),
            opts=MappingProxyType(opts),
        )

    def request_cgi(self, opts: Optional[Mapping] = None) -> Request:
        """Build a request from the stored configuration and per-call options.

        Header order: Host, User-Agent, Content-Type, Content-Length, Cookie,
        Connection, Authorization, then the configured ``headers`` in their
        given order. Any of the computed headers is skipped when ``headers``
        already supplies it, so explicit headers always win.

        Args:
            opts: Per-call options layered over the stored configuration

        Returns:
            Request object whose ``opts`` hold the effective options
        """
        opts = self.config.layered(opts)
        method = stringify(opts.get('method')) or 'GET'
        configured = to_header_list(opts.get('headers'))

        def absent(name: str) -> bool:
            return find_header(configured, name) is None

        body, content_type = self._build_body(opts)

        headers = []
        if absent('Host'):
            headers.append(('Host', self.host_header(opts.get('vhost'))))
        agent = stringify(opts.get('agent'))
        if agent and absent('User-Agent'):
            headers.append(('User-Agent', agent))
        if content_type and absent('Content-Type'):
            headers.append(('Content-Type', content_type))
        if (body or method.upper() not in BODYLESS_METHODS) and absent('Content-Length'):
            headers.append(('Content-Length', str(len(body))))

        for option, name in (('cookie', 'Cookie'), ('connection', 'Connection'), ('authorization', 'Authorization')):
            value = stringify(opts.get(option))
            if value and absent(name):
                headers.append((name, value))

        headers.extend(configured)

        return Request(
            method=method,
            uri=build_uri(opts.get('uri'), opts.get('query'), opts.get('vars_get')),
            version=stringify(opts.get('version')) or '1.1',
            headers=tuple(headers),
            body=body,
            raw_headers=stringify(opts.get('raw_headers')),
            opts=MappingProxyType(opts),
        )

    def _build_body(self, opts: Mapping) -> Tuple[bytes, Optional[str]]:
        ctype = stringify(opts.get('ctype')) or None

        if opts.get('form_data') is not None:
            return self.encoder.encode(opts['form_data'])

        body = _to_body(opts.get('data'))
        if body:
            return body, ctype

        if opts.get('vars_post'):
            return form_urlencode(opts['vars_post']).encode('utf-8'), ctype or FORM_URLENCODED

        return b'', ctype
