"""Bearer-token authentication policies for the remote-storage endpoints."""

import secrets
from dataclasses import dataclass
from typing import Union

from promdoc.core.errors import AuthError

_BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthDisabled:
    """No token configured: every request is accepted."""

    def authorize(self, authorization: str | None) -> None:
        return None


@dataclass(frozen=True)
class BearerTokenAuth:
    """Requests must carry the configured token in the Authorization header.

    The `Bearer ` prefix is optional, a bare token is accepted as well.
    """

    token: str

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("token must not be empty, use AuthDisabled instead")

    def authorize(self, authorization: str | None) -> None:
        """Raise AuthError unless the header carries the expected token."""
        if not authorization:
            raise AuthError("missing bearer token")
        presented = authorization.removeprefix(_BEARER_PREFIX)
        if not secrets.compare_digest(presented.encode(), self.token.encode()):
            raise AuthError("invalid bearer token")


AuthPolicy = Union[AuthDisabled, BearerTokenAuth]


def auth_from_token(token: str | None) -> AuthPolicy:
    """Build the policy for an optional configured token.

    An absent or empty token disables authentication entirely.
    """
    if not token:
        return AuthDisabled()
    return BearerTokenAuth(token)
