"""Recognized but unimplemented authentication schemes.

These are registered so challenges for them are identified by name and
reported as unsupported instead of being mistaken for unknown schemes.
"""

from wirehttp.auth.base import AuthScheme, Challenge
from wirehttp.auth.registry import register_scheme
from wirehttp.exceptions import UnsupportedAuthScheme
from wirehttp.request import Request


class UnsupportedScheme(AuthScheme):
    """Placeholder scheme that always refuses to authorize."""

    supported = False

    def authorize(self, request: Request, challenge: Challenge, username: str, password: str) -> str:
        raise UnsupportedAuthScheme(challenge.scheme)


@register_scheme("digest")
class DigestAuth(UnsupportedScheme):
    pass


@register_scheme("negotiate")
class NegotiateAuth(UnsupportedScheme):
    pass


@register_scheme("ntlm")
class NTLMAuth(UnsupportedScheme):
    pass
