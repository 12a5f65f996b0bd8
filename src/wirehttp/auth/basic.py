"""HTTP Basic authentication."""

import base64

from wirehttp.auth.base import AuthScheme, Challenge
from wirehttp.auth.registry import register_scheme
from wirehttp.request import Request


def basic_auth_header(username: str, password: str) -> str:
    """Build a Basic Authorization header value.

    Args:
        username: User name
        password: Password

    Returns:
        ``"Basic " + base64(username:password)``

    Example:
        >>> basic_auth_header("user1", "pass1")
        'Basic dXNlcjE6cGFzczE='
    """
    token = base64.b64encode(f"{username}:{password}".encode('utf-8')).decode('ascii')
    return f"Basic {token}".rstrip()


@register_scheme("basic")
class BasicAuth(AuthScheme):
    """Answers Basic challenges with base64-encoded credentials."""

    def authorize(self, request: Request, challenge: Challenge, username: str, password: str) -> str:
        return basic_auth_header(username, password)
