"""Ordered header helpers and header file parsing.

Headers are kept as an ordered list of (name, value) pairs so that the wire
order always matches insertion order and repeated names survive.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from wirehttp.utils.text import iter_pairs, stringify

HeaderList = List[Tuple[str, str]]


def to_header_list(headers) -> HeaderList:
    """Convert a mapping or sequence of pairs into an ordered header list.

    Args:
        headers: Mapping, sequence of (name, value) pairs, or None

    Returns:
        List of (name, value) string pairs
    """
    return [(stringify(name), stringify(value)) for name, value in iter_pairs(headers)]


def find_header(headers: Iterable[Tuple[str, str]], name: str) -> Optional[str]:
    """Return the first value for a header name (case-insensitive)."""
    wanted = name.lower()
    for key, value in headers:
        if key.lower() == wanted:
            return value
    return None


def get_all(headers: Iterable[Tuple[str, str]], name: str) -> List[str]:
    """Return every value for a header name (case-insensitive), in order."""
    wanted = name.lower()
    return [value for key, value in headers if key.lower() == wanted]


def has_header(headers, name: str) -> bool:
    """Check whether a header is present in a mapping or pair sequence."""
    return find_header(iter_pairs(headers), name) is not None


def format_headers(headers: Iterable[Tuple[str, str]]) -> bytes:
    """Serialize headers as ``Name: value\\r\\n`` lines."""
    return b''.join(f"{name}: {value}\r\n".encode('utf-8') for name, value in headers)


def load_headers_from_file(header_file: str) -> Dict[str, str]:
    """Load HTTP headers from file.

    File format is simple key: value pairs, one per line. The returned
    dictionary keeps file order.

    Args:
        header_file: Path to header file

    Returns:
        Dictionary of header name to value

    Example file format:
        Accept: application/json
        Authorization: Bearer token123
        X-Custom-Header: value
    """
    headers = {}
    header_path = Path(header_file)

    if not header_path.exists():
        return headers

    with open(header_path, 'r') as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith('#'):
                continue

            if ':' in line:
                name, value = line.split(':', 1)
                headers[name.strip()] = value.strip()

    return headers
