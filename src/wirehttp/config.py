"""Configuration management for wirehttp.

The client stores only the options a caller explicitly set. Defaults are
layered underneath at request-build time, so a fresh client reports an empty
configuration.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Applied beneath the stored configuration by request_cgi
REQUEST_DEFAULTS: Dict[str, Any] = {
    'method': 'GET',
    'uri': '/',
    'version': '1.1',
    'data': '',
    'agent': DEFAULT_USER_AGENT,
}

CONFIG_TYPES: Dict[str, str] = {
    'method': 'string',
    'uri': 'string',
    'version': 'string',
    'data': 'string',
    'headers': 'mapping',
    'raw_headers': 'string',
    'agent': 'string',
    'authorization': 'string',
    'cookie': 'string',
    'connection': 'string',
    'ctype': 'string',
    'vhost': 'string',
    'query': 'string',
    'vars_get': 'mapping',
    'vars_post': 'mapping',
    'form_data': 'list',
    'username': 'string',
    'password': 'string',
    'read_max_data': 'integer',
    'persist': 'bool',
}

# Nested mappings copied on merge so the caller's objects are never shared
_NESTED_KEYS = ('headers', 'vars_get', 'vars_post')

_TRUE_WORDS = {'1', 'true', 'yes', 'y', 'on'}


def coerce_option(key: str, value: str) -> Any:
    """Convert a textual option value to the type declared in CONFIG_TYPES.

    Unknown keys and unconvertible values are returned unchanged.

    Args:
        key: Option name
        value: Raw string value (e.g. from the command line)

    Returns:
        Converted value
    """
    kind = CONFIG_TYPES.get(key)
    if kind == 'integer':
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Option '{key}' expects an integer, keeping {value!r}")
            return value
    if kind == 'bool':
        return value.strip().lower() in _TRUE_WORDS
    return value


class Config(Mapping):
    """Option name to value mapping, changed only through :meth:`merge`.

    Example:
        >>> config = Config()
        >>> config.merge({'method': 'POST'})
        {'method': 'POST'}
        >>> config['method']
        'POST'
    """

    def __init__(self, initial: Optional[Mapping] = None):
        self._values: Dict[str, Any] = {}
        if initial:
            self.merge(initial)

    def merge(self, partial: Optional[Mapping]) -> Dict[str, Any]:
        """Merge options into the configuration.

        Values from ``partial`` win on key conflicts. Unrecognized keys are
        kept as given.

        Args:
            partial: Options to merge (never modified or retained)

        Returns:
            A copy of the resulting configuration
        """
        for key, value in (partial or {}).items():
            if key not in CONFIG_TYPES:
                logger.debug(f"Keeping unrecognized option '{key}'")
            self._values[key] = copy_value(key, value)
        return self.snapshot()

    def snapshot(self) -> Dict[str, Any]:
        """Return a shallow copy of the stored options."""
        return {key: copy_value(key, value) for key, value in self._values.items()}

    def layered(self, opts: Optional[Mapping] = None) -> Dict[str, Any]:
        """Build the effective options for one request.

        Precedence, lowest to highest: REQUEST_DEFAULTS, stored options,
        per-call ``opts``.

        Args:
            opts: Per-call options

        Returns:
            New dictionary with the effective options
        """
        merged = dict(REQUEST_DEFAULTS)
        merged.update(self.snapshot())
        for key, value in (opts or {}).items():
            merged[key] = copy_value(key, value)
        return merged

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Config({self._values!r})"


def copy_value(key: str, value: Any) -> Any:
    """Copy nested mappings and lists so merged configs never alias input."""
    if key in _NESTED_KEYS and isinstance(value, Mapping):
        return dict(value)
    if key == 'form_data' and isinstance(value, (list, tuple)):
        return [dict(part) if isinstance(part, Mapping) else part for part in value]
    return value
