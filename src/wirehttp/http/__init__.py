"""Header and cookie helpers for wirehttp."""

from wirehttp.http.cookies import cookie_header, load_cookies_from_file
from wirehttp.http.headers import (
    find_header,
    format_headers,
    get_all,
    has_header,
    load_headers_from_file,
    to_header_list,
)

__all__ = [
    "cookie_header",
    "find_header",
    "format_headers",
    "get_all",
    "has_header",
    "load_cookies_from_file",
    "load_headers_from_file",
    "to_header_list",
]
