"""Utility functions for wirehttp."""

from wirehttp.utils.text import (
    FixedRandom,
    RandomStringProvider,
    SecretsRandom,
    escape_quoted,
    form_urlencode,
    stringify,
)

__all__ = [
    "FixedRandom",
    "RandomStringProvider",
    "SecretsRandom",
    "escape_quoted",
    "form_urlencode",
    "stringify",
]
