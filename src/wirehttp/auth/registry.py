"""Authentication scheme registry keyed by challenge scheme name."""

import logging
from typing import Dict, List, Optional, Type

from wirehttp.auth.base import AuthScheme

logger = logging.getLogger(__name__)


class AuthRegistry:
    """Registry for authentication schemes by (case-insensitive) name."""

    _schemes: Dict[str, Type[AuthScheme]] = {}
    _initialized: bool = False

    @classmethod
    def register(cls, name: str, scheme_class: Type[AuthScheme]):
        """Register a scheme class for a challenge token.

        Args:
            name: Scheme token (e.g. "Basic")
            scheme_class: AuthScheme subclass to register
        """
        cls._schemes[name.lower()] = scheme_class
        logger.debug(f"Registered auth scheme '{name}': {scheme_class.__name__}")

    @classmethod
    def get_scheme(cls, name: str) -> Optional[AuthScheme]:
        """Get a scheme instance by challenge token.

        Args:
            name: Scheme token from a WWW-Authenticate header

        Returns:
            AuthScheme instance, or None for unknown schemes
        """
        if not cls._initialized:
            cls._initialize_schemes()

        scheme_class = cls._schemes.get(name.lower())
        if scheme_class is None:
            return None
        return scheme_class()

    @classmethod
    def _initialize_schemes(cls):
        """Import the built-in scheme modules so they register themselves.

        Called lazily on first use to avoid circular imports.
        """
        if cls._initialized:
            return

        from wirehttp.auth import basic, unsupported  # noqa: F401

        cls._initialized = True
        logger.debug(f"Initialized auth registry with {len(cls._schemes)} schemes")

    @classmethod
    def list_schemes(cls) -> List[str]:
        """List registered scheme tokens (lower-cased, sorted)."""
        if not cls._initialized:
            cls._initialize_schemes()

        return sorted(cls._schemes.keys())


def register_scheme(name: str):
    """Decorator for registering authentication scheme classes.

    Usage:
        @register_scheme("basic")
        class BasicAuth(AuthScheme):
            ...

    Args:
        name: Challenge scheme token
    """
    def decorator(scheme_class: Type[AuthScheme]):
        AuthRegistry.register(name, scheme_class)
        return scheme_class
    return decorator
