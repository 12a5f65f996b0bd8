"""Text helpers: random tokens, header-safe escaping and value stringification."""

import json
import secrets
import string
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Tuple, Union
from urllib.parse import quote_plus

ALNUM = string.ascii_letters + string.digits


class RandomStringProvider(ABC):
    """Source of random text used for multipart boundaries and junk requests."""

    @abstractmethod
    def alnum(self, length: int) -> str:
        """Return a random alphanumeric string.

        Args:
            length: Number of characters to generate

        Returns:
            Random string made of ASCII letters and digits
        """
        pass


class SecretsRandom(RandomStringProvider):
    """Random provider backed by the ``secrets`` module."""

    def alnum(self, length: int) -> str:
        return ''.join(secrets.choice(ALNUM) for _ in range(length))


class FixedRandom(RandomStringProvider):
    """Provider that always returns the same token.

    Useful for reproducible request bytes, e.g. when comparing requests
    against recorded fixtures.
    """

    def __init__(self, value: str):
        self.value = value

    def alnum(self, length: int) -> str:
        return self.value


def escape_quoted(value: str) -> str:
    """Escape a value for embedding inside a quoted header parameter.

    Uses form-style percent escaping: unreserved characters are kept,
    spaces become ``+`` and everything else becomes ``%XX``.

    Args:
        value: Raw value (e.g. a filename)

    Returns:
        Escaped value safe to put between double quotes
    """
    return quote_plus(value, safe='')


def _json_fallback(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode('latin-1')
    if isinstance(value, (set, frozenset)):
        return sorted(stringify(item) for item in value)
    return str(value)


def stringify(value: Any) -> str:
    """Render any value as deterministic text.

    Rules:
        - None -> ""
        - bool -> "true" / "false"
        - int, float -> decimal text
        - str -> unchanged
        - bytes -> latin-1 decoded (byte-preserving)
        - list, tuple, dict, set -> JSON text with the default separators,
          e.g. ``[5, "hello"]``

    Anything else falls back to ``str(value)``.

    Args:
        value: Value to render

    Returns:
        Text representation
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode('latin-1')
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        if isinstance(value, (set, frozenset)):
            value = _json_fallback(value)
        return json.dumps(value, default=_json_fallback, ensure_ascii=False)
    return str(value)


def iter_pairs(values: Union[Mapping[Any, Any], Iterable[Tuple[Any, Any]], None]):
    """Yield (key, value) pairs from a mapping or a sequence of pairs.

    Args:
        values: Mapping, sequence of 2-tuples, or None

    Yields:
        Tuples of (key, value) in their original order
    """
    if not values:
        return
    if isinstance(values, Mapping):
        yield from values.items()
    else:
        for pair in values:
            yield pair[0], pair[1]


def form_urlencode(values) -> str:
    """Encode pairs as ``application/x-www-form-urlencoded`` text.

    Order is preserved and list values repeat their key.

    Args:
        values: Mapping or sequence of pairs

    Returns:
        Encoded string (without leading ``?``)
    """
    encoded = []
    for key, value in iter_pairs(values):
        items = value if isinstance(value, (list, tuple)) else [value]
        for item in items:
            encoded.append(f"{escape_quoted(stringify(key))}={escape_quoted(stringify(item))}")
    return '&'.join(encoded)
