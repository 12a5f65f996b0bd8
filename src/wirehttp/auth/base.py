"""Base class for authentication schemes and challenge parsing."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from wirehttp.request import Request

# auth-param: token=token / token="quoted string"
_PARAM = re.compile(r'([!#$%&\'*+\-.^_`|~0-9A-Za-z]+)\s*=\s*("(?:[^"\\]|\\.)*"|[^,\s]*)')


@dataclass
class Challenge:
    """One scheme offered in a ``WWW-Authenticate`` header.

    Attributes:
        scheme: Scheme token as sent (e.g. "Basic")
        params: Auth parameters, keys lower-cased, quotes removed
        raw: The challenge text after the scheme token
    """

    scheme: str
    params: Dict[str, str] = field(default_factory=dict)
    raw: str = ''

    @property
    def realm(self) -> Optional[str]:
        return self.params.get('realm')


def parse_challenges(values: List[str]) -> List[Challenge]:
    """Parse ``WWW-Authenticate`` header values into challenges.

    Each header value is treated as one challenge; only the first parameter
    list after the scheme token is read.

    Args:
        values: Header values, in order

    Returns:
        Challenges in the order they were offered
    """
    challenges = []
    for value in values:
        value = value.strip()
        if not value:
            continue
        scheme, _, rest = value.partition(' ')
        params = {}
        for name, raw_value in _PARAM.findall(rest):
            if raw_value.startswith('"') and raw_value.endswith('"') and len(raw_value) >= 2:
                raw_value = re.sub(r'\\(.)', r'\1', raw_value[1:-1])
            params[name.lower()] = raw_value
        challenges.append(Challenge(scheme=scheme.rstrip(','), params=params, raw=rest.strip()))
    return challenges


class AuthScheme(ABC):
    """An authentication scheme that can answer a server challenge.

    Subclasses register themselves with
    :func:`wirehttp.auth.registry.register_scheme` under the scheme token
    they handle.
    """

    #: Whether the scheme can actually produce credentials
    supported: bool = True

    @abstractmethod
    def authorize(
        self,
        request: Request,
        challenge: Challenge,
        username: str,
        password: str,
    ) -> str:
        """Produce the Authorization header value answering a challenge.

        Args:
            request: The request that was challenged
            challenge: The challenge being answered
            username: Configured username
            password: Configured password

        Returns:
            Authorization header value

        Raises:
            UnsupportedAuthScheme: If the scheme cannot produce credentials
        """
        pass
