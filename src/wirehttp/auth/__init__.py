"""Authentication schemes and challenge negotiation for wirehttp."""

from wirehttp.auth.base import AuthScheme, Challenge, parse_challenges
from wirehttp.auth.basic import BasicAuth, basic_auth_header
from wirehttp.auth.negotiator import AuthNegotiator, AuthState
from wirehttp.auth.registry import AuthRegistry, register_scheme

__all__ = [
    "AuthNegotiator",
    "AuthRegistry",
    "AuthScheme",
    "AuthState",
    "BasicAuth",
    "Challenge",
    "basic_auth_header",
    "parse_challenges",
    "register_scheme",
]
