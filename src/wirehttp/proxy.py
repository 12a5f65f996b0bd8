"""Proxy chain parsing and tunnel negotiation."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from wirehttp.exceptions import ProxyError
from wirehttp.response import ResponseParser
from wirehttp.transport import Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProxyHop:
    """One proxy in a chain, e.g. ``http:10.0.0.1:8080``."""

    kind: str
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.kind}:{self.host}:{self.port}"


def parse_proxies(proxies: Union[str, List[Any], None]) -> List[ProxyHop]:
    """Parse a proxy chain description.

    Accepts a comma-separated string (``"http:1.2.3.4:8080,socks4:..."``), a
    list of such strings, or a list of ProxyHop objects.

    Args:
        proxies: Chain description, or None for a direct connection

    Returns:
        Ordered list of hops

    Raises:
        ValueError: If an entry is not ``type:host:port``
    """
    if not proxies:
        return []
    entries = proxies.split(',') if isinstance(proxies, str) else list(proxies)

    hops = []
    for entry in entries:
        if isinstance(entry, ProxyHop):
            hops.append(entry)
            continue
        entry = str(entry).strip()
        if not entry:
            continue
        parts = entry.rsplit(':', 1)
        kind_host = parts[0].split(':', 1) if len(parts) == 2 else []
        if len(kind_host) != 2:
            raise ValueError(f"Invalid proxy entry (expected type:host:port): {entry}")
        try:
            port = int(parts[1])
        except ValueError:
            raise ValueError(f"Invalid proxy port in entry: {entry}")
        hops.append(ProxyHop(kind=kind_host[0].lower(), host=kind_host[1], port=port))
    return hops


class ProxyChainNegotiator(ABC):
    """Asks the proxy at the end of a handle to open a tunnel to the next hop."""

    @abstractmethod
    def tunnel(
        self,
        transport: Transport,
        handle: Any,
        hop: ProxyHop,
        host: str,
        port: int,
        timeout: float,
    ) -> Any:
        """Open a tunnel through ``hop`` to ``host:port``.

        Args:
            transport: Transport used for I/O on the handle
            handle: Connection to the proxy
            hop: The proxy the handle is connected to
            host: Next destination (another proxy or the target)
            port: Next destination port
            timeout: Seconds to wait for the proxy's answer

        Returns:
            Handle now connected through to ``host:port``

        Raises:
            ProxyError: If the proxy refuses or the type is unsupported
        """
        pass


class HttpConnectNegotiator(ProxyChainNegotiator):
    """Tunnels through HTTP proxies with the CONNECT method."""

    def tunnel(self, transport, handle, hop, host, port, timeout):
        if hop.kind not in ('http', 'https'):
            raise ProxyError(f"Unsupported proxy type '{hop.kind}' for {hop}", hop.host, hop.port)

        target = f"{host}:{port}"
        transport.write(handle, f"CONNECT {target} HTTP/1.1\r\nHost: {target}\r\n\r\n".encode('utf-8'))

        parser = ResponseParser()
        response: Optional[Any] = None
        while response is None:
            data = transport.read_once(handle, timeout)
            parser.feed(data)
            # A successful CONNECT answer has no body
            response = parser.next_response(method='HEAD', eof=not data)
            if response is None and not data:
                break

        if response is None or not 200 <= response.code < 300:
            status = response.code if response is not None else 'no response'
            raise ProxyError(f"Proxy {hop} refused tunnel to {target}: {status}", hop.host, hop.port)

        logger.debug(f"Tunnel through {hop} to {target} established")
        return handle
