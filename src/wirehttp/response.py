"""HTTP response model and incremental response parser.

The parser is fed raw bytes as they arrive and hands out complete responses
one at a time. Bytes following a complete response stay buffered, which is
what lets pipelined responses be matched to their requests in order.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from wirehttp.exceptions import MalformedResponse
from wirehttp.http.headers import find_header, get_all
from wirehttp.request import Request

logger = logging.getLogger(__name__)

STATUS_LINE = re.compile(rb"^HTTP/(\d+\.\d+)[ \t]+(\d{3})(?:[ \t]+(.*))?$")
HEADER_END = b"\r\n\r\n"


@dataclass
class Response:
    """A parsed HTTP response.

    Attributes:
        code: Status code
        message: Reason phrase
        version: Protocol version without the ``HTTP/`` prefix
        headers: Ordered (name, value) pairs, repeated names preserved
        body: Body bytes (de-chunked)
        truncated: Whether the body was cut short at a read limit
        request: The request this response answers, when known
    """

    code: int
    message: str = ''
    version: str = '1.1'
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b''
    truncated: bool = False
    request: Optional[Request] = field(default=None, repr=False)

    def header(self, name: str) -> Optional[str]:
        return find_header(self.headers, name)

    def get_all(self, name: str) -> List[str]:
        return get_all(self.headers, name)

    @property
    def challenges(self) -> List[str]:
        """All ``WWW-Authenticate`` header values, in order."""
        return self.get_all('WWW-Authenticate')

    @property
    def keep_alive(self) -> bool:
        """Whether the server leaves the connection open after this response.

        ``Connection: close`` always ends it; HTTP/1.0 responses end it
        unless they ask for ``keep-alive``.
        """
        tokens = {
            token.strip().lower()
            for value in self.get_all('Connection')
            for token in value.split(',')
        }
        if 'close' in tokens:
            return False
        if self.version == '1.0':
            return 'keep-alive' in tokens
        return True


class ResponseParser:
    """Incremental parser for a stream of HTTP responses."""

    def __init__(self):
        self._buffer = bytearray()

    @property
    def buffered(self) -> int:
        """Number of bytes received but not yet consumed."""
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        self._buffer += data

    def clear(self) -> None:
        self._buffer.clear()

    def next_response(
        self,
        method: str = 'GET',
        eof: bool = False,
        max_body: Optional[int] = None,
    ) -> Optional[Response]:
        """Parse and consume one complete response from the buffer.

        Interim 1xx responses (other than 101) are consumed and skipped.

        Args:
            method: Method of the request being answered (HEAD has no body)
            eof: Whether the peer has closed the stream
            max_body: Keep at most this many body bytes. A body that runs
                until close is returned as soon as this many bytes arrived.

        Returns:
            A Response, or None if more bytes are needed

        Raises:
            MalformedResponse: If the buffered bytes cannot be a response
        """
        while True:
            response = self._parse_one(method, eof, max_body)
            if response is None:
                return None
            if 100 <= response.code < 200 and response.code != 101:
                logger.debug(f"Skipping interim response {response.code}")
                continue
            return response

    def _parse_one(self, method: str, eof: bool, max_body: Optional[int]) -> Optional[Response]:
        # Tolerate stray CRLFs left between pipelined responses
        while self._buffer[:2] == b"\r\n":
            del self._buffer[:2]

        end = self._buffer.find(HEADER_END)
        if end < 0:
            if eof and self._buffer:
                raise MalformedResponse("Connection closed before response headers were complete")
            return None

        head = bytes(self._buffer[:end])
        code, message, version, headers = self._parse_head(head)
        offset = end + len(HEADER_END)

        if method.upper() == 'HEAD' or code in (204, 304) or 100 <= code < 200:
            body, consumed = b'', offset
        else:
            parsed = self._parse_body(headers, offset, eof, max_body)
            if parsed is None:
                return None
            body, consumed = parsed

        del self._buffer[:consumed]
        truncated = max_body is not None and len(body) > max_body
        if truncated:
            body = body[:max_body]
        logger.debug(f"Parsed response: HTTP/{version} {code} ({len(body)} body bytes)")
        return Response(
            code=code, message=message, version=version, headers=headers, body=body, truncated=truncated
        )

    def _parse_head(self, head: bytes):
        lines = head.split(b"\r\n")
        match = STATUS_LINE.match(lines[0])
        if match is None:
            raise MalformedResponse(f"Invalid status line: {lines[0][:80]!r}")

        version = match.group(1).decode('ascii')
        code = int(match.group(2))
        message = (match.group(3) or b'').decode('latin-1').strip()

        headers: List[Tuple[str, str]] = []
        for line in lines[1:]:
            # Obsolete line folding continues the previous value
            if line[:1] in (b" ", b"\t") and headers:
                name, value = headers[-1]
                headers[-1] = (name, f"{value} {line.strip().decode('latin-1')}")
                continue
            if b":" not in line:
                raise MalformedResponse(f"Invalid header line: {line[:80]!r}")
            name, value = line.split(b":", 1)
            headers.append((name.strip().decode('latin-1'), value.strip().decode('latin-1')))

        return code, message, version, headers

    def _parse_body(self, headers, offset: int, eof: bool, max_body: Optional[int]) -> Optional[Tuple[bytes, int]]:
        transfer_encoding = find_header(headers, 'Transfer-Encoding') or ''
        if 'chunked' in transfer_encoding.lower():
            return self._parse_chunked(offset, eof)

        length = find_header(headers, 'Content-Length')
        if length is not None:
            try:
                size = int(length)
            except ValueError:
                raise MalformedResponse(f"Invalid Content-Length: {length!r}")
            if size < 0:
                raise MalformedResponse(f"Invalid Content-Length: {length!r}")
            if len(self._buffer) - offset < size:
                if eof:
                    raise MalformedResponse("Connection closed before the response body was complete")
                return None
            return bytes(self._buffer[offset:offset + size]), offset + size

        # No framing: the body runs until the connection closes or passes the limit
        over_limit = max_body is not None and len(self._buffer) - offset > max_body
        if not eof and not over_limit:
            return None
        return bytes(self._buffer[offset:]), len(self._buffer)

    def _parse_chunked(self, offset: int, eof: bool) -> Optional[Tuple[bytes, int]]:
        body = bytearray()
        pos = offset
        while True:
            line_end = self._buffer.find(b"\r\n", pos)
            if line_end < 0:
                break
            size_field = bytes(self._buffer[pos:line_end]).split(b";", 1)[0].strip()
            try:
                size = int(size_field, 16)
            except ValueError:
                raise MalformedResponse(f"Invalid chunk size: {size_field[:20]!r}")
            pos = line_end + 2

            if size == 0:
                # Skip trailers up to the terminating blank line
                while True:
                    trailer_end = self._buffer.find(b"\r\n", pos)
                    if trailer_end < 0:
                        break
                    trailer = self._buffer[pos:trailer_end]
                    pos = trailer_end + 2
                    if not trailer:
                        return bytes(body), pos
                break

            if len(self._buffer) < pos + size + 2:
                break
            body += self._buffer[pos:pos + size]
            pos += size + 2

        if eof:
            raise MalformedResponse("Connection closed inside a chunked body")
        return None
