"""Adaptive authentication: withhold credentials until challenged.

Per logical send the negotiator moves NO_AUTH -> PENDING -> AUTHENTICATED.
A request is first sent without credentials; when the server answers 401
with a supported challenge, the same request is resent once with an
Authorization header appended. A request that already carries an
Authorization header is never touched.
"""

import logging
from enum import Enum
from typing import Optional, Tuple

from wirehttp.auth.base import parse_challenges
from wirehttp.auth.registry import AuthRegistry
from wirehttp.exceptions import UnsupportedAuthScheme
from wirehttp.request import Request
from wirehttp.response import Response
from wirehttp.utils.text import stringify

logger = logging.getLogger(__name__)

MAX_AUTH_RETRIES = 1


class AuthState(Enum):
    NO_AUTH = "no_auth"
    PENDING = "pending"
    AUTHENTICATED = "authenticated"


class AuthNegotiator:
    """Tracks credentials and the last challenge for one client.

    Attributes:
        username: Client-level username (per-request options override it)
        password: Client-level password
        state: Current negotiation state
        last_scheme: Scheme of the most recent challenge seen
        last_realm: Realm of the most recent challenge seen
        retries: Automatic resends performed during the current send
    """

    def __init__(self, username: str = '', password: str = ''):
        self.username = username
        self.password = password
        self.state = AuthState.NO_AUTH
        self.last_scheme: Optional[str] = None
        self.last_realm: Optional[str] = None
        self.retries = 0

    @staticmethod
    def has_override(request: Request) -> bool:
        """Whether the request already carries an explicit Authorization header."""
        return request.header('Authorization') is not None

    def credentials_for(self, request: Request) -> Tuple[str, str]:
        """Resolve credentials: request options first, then the client's."""
        username = request.opts.get('username')
        password = request.opts.get('password')
        if username is None:
            username = self.username
        if password is None:
            password = self.password
        return stringify(username), stringify(password)

    def begin(self, request: Request) -> None:
        """Reset per-send state before a new logical send."""
        self.retries = 0
        if self.has_override(request):
            self.state = AuthState.AUTHENTICATED
        else:
            self.state = AuthState.NO_AUTH

    def retry_request(self, request: Request, response: Response) -> Optional[Request]:
        """Decide whether a response calls for an authenticated resend.

        Args:
            request: The request that was sent
            response: The response it got

        Returns:
            The request to resend with credentials, or None to keep the
            response as it is
        """
        if response.code != 401 or not response.challenges:
            return None
        if self.has_override(request):
            logger.debug("Explicit Authorization header rejected; not negotiating")
            return None
        if self.retries >= MAX_AUTH_RETRIES:
            return None

        username, password = self.credentials_for(request)
        if not username:
            logger.debug("401 received but no credentials are configured")
            return None

        challenges = parse_challenges(response.challenges)
        if challenges:
            self.last_scheme = challenges[0].scheme
            self.last_realm = challenges[0].realm

        for challenge in challenges:
            scheme = AuthRegistry.get_scheme(challenge.scheme)
            if scheme is None:
                logger.debug(f"Ignoring unknown auth scheme '{challenge.scheme}'")
                continue
            try:
                value = scheme.authorize(request, challenge, username, password)
            except UnsupportedAuthScheme as e:
                logger.warning(f"{e}; returning the 401 response")
                continue

            self.state = AuthState.PENDING
            self.retries += 1
            self.last_scheme = challenge.scheme
            self.last_realm = challenge.realm
            logger.info(f"Retrying {request.method} {request.uri} with {challenge.scheme} credentials")
            return request.with_header('Authorization', value)

        return None

    def complete(self, response: Response) -> None:
        """Record the outcome of an authenticated resend."""
        if self.state is not AuthState.PENDING:
            return
        if response.code == 401:
            logger.info(f"Credentials rejected for realm {self.last_realm!r}")
            self.state = AuthState.NO_AUTH
        else:
            self.state = AuthState.AUTHENTICATED
