"""Byte-exact ``multipart/form-data`` encoding.

Every part option is resolved three ways: the key may be absent (use the
default), present with ``None`` (suppress the attribute or header), or present
with a value (use it). The encoder never raises on malformed input.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple, Union

from wirehttp.utils.text import RandomStringProvider, SecretsRandom, escape_quoted, stringify

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
BOUNDARY_PADDING = "-" * 27
BOUNDARY_RANDOM_LENGTH = 30
DEFAULT_MIME_TYPE = "text/plain"
DEFAULT_ENCODING = "8bit"
BINARY_ENCODING = "binary"


class _Missing:
    """Marker for an option key that was not supplied at all."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass
class FormPart:
    """One field of a multipart form.

    Attributes:
        name: Field name; only strings produce a ``name=`` attribute
        data: Text, bytes, file-like object, number, boolean or composite
        filename: Explicit filename, ``None`` to suppress, MISSING to derive
        mime_type: Part Content-Type, ``None`` to suppress, MISSING for default
        encoding: Content-Transfer-Encoding, ``None`` to suppress, MISSING
            for default
    """

    name: Any = None
    data: Any = None
    filename: Any = MISSING
    mime_type: Any = MISSING
    encoding: Any = MISSING

    @classmethod
    def from_descriptor(cls, descriptor: Any) -> "FormPart":
        """Build a part from a mapping descriptor.

        Keys that are absent stay MISSING; keys mapped to ``None`` stay None.
        Anything that is neither a FormPart nor a mapping becomes an unnamed
        part whose data is the value itself.

        Args:
            descriptor: Mapping with name/data/filename/mime_type/encoding keys

        Returns:
            FormPart instance
        """
        if isinstance(descriptor, FormPart):
            return descriptor
        if not isinstance(descriptor, Mapping):
            return cls(data=descriptor)
        return cls(
            name=descriptor.get('name'),
            data=descriptor.get('data'),
            filename=descriptor.get('filename', MISSING),
            mime_type=descriptor.get('mime_type', MISSING),
            encoding=descriptor.get('encoding', MISSING),
        )

    def resolved_filename(self) -> Optional[str]:
        """Resolve the ``filename=`` attribute value, or None to omit it."""
        if self.filename is None:
            return None
        if self.filename is not MISSING:
            return escape_quoted(stringify(self.filename))

        # A file opened from disk names itself
        path = getattr(self.data, 'name', None)
        if isinstance(path, os.PathLike):
            path = os.fspath(path)
        if _is_readable(self.data) and isinstance(path, str) and path:
            return escape_quoted(os.path.basename(path))

        if isinstance(self.name, str):
            return self.name
        return None

    def resolved_mime_type(self) -> Optional[str]:
        return _resolve(self.mime_type, DEFAULT_MIME_TYPE)

    def resolved_encoding(self) -> Optional[str]:
        return _resolve(self.encoding, DEFAULT_ENCODING)


def _resolve(value: Any, default: str) -> Optional[str]:
    if value is MISSING:
        return default
    if value is None:
        return None
    return stringify(value)


def _is_readable(value: Any) -> bool:
    return callable(getattr(value, 'read', None))


def coerce_data(data: Any) -> bytes:
    """Convert part data to bytes.

    Variants:
        - Bytes: bytes-like values and file-like objects (read fully)
        - Text: strings, encoded as UTF-8
        - Scalar: everything else, rendered with :func:`stringify`

    Args:
        data: Part data

    Returns:
        Raw bytes to place in the part body
    """
    if _is_readable(data):
        try:
            data = data.read()
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read form data stream, sending empty part: {e}")
            data = b''
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode('utf-8')
    return stringify(data).encode('utf-8')


def normalize_newlines(data: bytes) -> bytes:
    """Drop every CR, then turn each LF into CRLF."""
    return data.replace(b"\r", b"").replace(b"\n", CRLF)


class MultipartEncoder:
    """Encodes an ordered list of form parts into a multipart body.

    Example:
        >>> encoder = MultipartEncoder(FixedRandom("MockBoundary1234"))
        >>> body, content_type = encoder.encode([{'name': 'a', 'data': '1'}])
        >>> content_type
        'multipart/form-data; boundary=---------------------------MockBoundary1234'
    """

    def __init__(self, rand: Optional[RandomStringProvider] = None):
        self.rand = rand or SecretsRandom()

    def new_boundary(self) -> str:
        return BOUNDARY_PADDING + self.rand.alnum(BOUNDARY_RANDOM_LENGTH)

    def encode(self, parts: Union[Iterable[Any], Mapping, None]) -> Tuple[bytes, str]:
        """Encode form parts.

        Args:
            parts: Sequence of part descriptors (mappings or FormPart), or a
                mapping of field name to data

        Returns:
            Tuple of (body bytes, Content-Type header value)
        """
        boundary = self.new_boundary()
        delimiter = f"--{boundary}".encode('ascii')

        body = bytearray()
        for part in self._normalize_parts(parts):
            body += delimiter + CRLF
            body += self._part_headers(part)
            body += CRLF
            body += self._part_body(part)
            body += CRLF
        body += delimiter + b"--" + CRLF

        logger.debug(f"Encoded multipart body: {len(body)} bytes, boundary {boundary}")
        return bytes(body), f"multipart/form-data; boundary={boundary}"

    def _normalize_parts(self, parts) -> List[FormPart]:
        if parts is None:
            return []
        if isinstance(parts, Mapping):
            return [FormPart(name=key, data=value) for key, value in parts.items()]
        if isinstance(parts, (str, bytes)):
            return [FormPart(data=parts)]
        try:
            return [FormPart.from_descriptor(part) for part in parts]
        except TypeError:
            return [FormPart(data=parts)]

    def _part_headers(self, part: FormPart) -> bytes:
        disposition = "Content-Disposition: form-data"
        if isinstance(part.name, str):
            disposition += f'; name="{part.name}"'
        filename = part.resolved_filename()
        if filename is not None:
            disposition += f'; filename="{filename}"'

        lines = [disposition]
        mime_type = part.resolved_mime_type()
        if mime_type is not None:
            lines.append(f"Content-Type: {mime_type}")
        encoding = part.resolved_encoding()
        if encoding is not None:
            lines.append(f"Content-Transfer-Encoding: {encoding}")

        return b''.join(line.encode('utf-8') + CRLF for line in lines)

    def _part_body(self, part: FormPart) -> bytes:
        data = coerce_data(part.data)
        # base64 only labels the part; the payload is not transformed
        if part.resolved_encoding() == BINARY_ENCODING:
            return data
        return normalize_newlines(data)
