"""Cookie file parsing utilities.

Supports Netscape cookie file format used by browsers and tools like curl.
Loaded cookies are turned into a ``Cookie`` header value for the ``cookie``
request option.
"""

import time
from http.cookiejar import Cookie
from pathlib import Path
from typing import Iterable, List, Optional


def load_cookies_from_file(cookie_file: str) -> List[Cookie]:
    """Load cookies from Netscape cookie file format.

    The Netscape cookie format is:
    # domain flag path secure expiration name value

    Args:
        cookie_file: Path to cookie file

    Returns:
        List of Cookie objects

    Example file format:
        # Netscape HTTP Cookie File
        .example.com    TRUE    /    FALSE    1735689600    sessionid    abc123
    """
    cookies = []
    cookie_path = Path(cookie_file)

    if not cookie_path.exists():
        return cookies

    with open(cookie_path, 'r') as f:
        for line in f:
            line = line.strip()

            if not line or line.startswith('#'):
                continue

            parts = line.split('\t')
            if len(parts) < 7:
                continue

            domain, flag, path, secure, expiration, name, value = parts[:7]

            try:
                expires = int(expiration)
            except ValueError:
                expires = None

            cookie = Cookie(
                version=0,
                name=name,
                value=value,
                port=None,
                port_specified=False,
                domain=domain,
                domain_specified=flag.upper() == 'TRUE',
                domain_initial_dot=domain.startswith('.'),
                path=path,
                path_specified=True,
                secure=secure.upper() == 'TRUE',
                expires=expires,
                discard=False,
                comment=None,
                comment_url=None,
                rest={},
                rfc2109=False,
            )
            cookies.append(cookie)

    return cookies


def _domain_matches(cookie: Cookie, host: str) -> bool:
    domain = cookie.domain.lstrip('.').lower()
    host = host.lower()
    if host == domain:
        return True
    return cookie.domain_specified and host.endswith('.' + domain)


def cookie_header(
    cookies: Iterable[Cookie],
    host: Optional[str] = None,
    path: str = '/',
    secure: bool = False,
    now: Optional[float] = None,
) -> str:
    """Build a Cookie header value from loaded cookies.

    Args:
        cookies: Cookies to consider
        host: Only include cookies whose domain matches this host (None = all)
        path: Request path used for path matching
        secure: Whether the request goes over TLS
        now: Current time in seconds since the epoch (defaults to time.time())

    Returns:
        ``name=value`` pairs joined by ``; `` (empty if nothing matches)
    """
    now = time.time() if now is None else now
    pairs = []
    for cookie in cookies:
        if host is not None and not _domain_matches(cookie, host):
            continue
        if not path.startswith(cookie.path or '/'):
            continue
        if cookie.secure and not secure:
            continue
        # Zero expiry marks a session cookie in Netscape files
        if cookie.expires and cookie.expires < now:
            continue
        pairs.append(f"{cookie.name}={cookie.value}")
    return '; '.join(pairs)
