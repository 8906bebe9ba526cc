"""Bearer token authentication."""

from dataclasses import dataclass
from typing import Protocol

from person_ledger.errors import AuthError

BEARER_PREFIX = "Bearer "


class IdentityVerifier(Protocol):
    """Interface for verifying identity tokens."""

    def verify(self, token: str) -> str:
        """Return the user id for a valid token or raise AuthError."""


@dataclass
class AuthService:
    """Resolves an Authorization header to a trusted user id."""

    verifier: IdentityVerifier

    def authenticate(self, authorization: str | None) -> str:
        """Return the authenticated user id for the header value."""
        token = parse_bearer_token(authorization)
        return self.verifier.verify(token)


def parse_bearer_token(authorization: str | None) -> str:
    """Extract the token from a ``Bearer <token>`` header value."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthError("Missing or invalid token")
    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise AuthError("Missing or invalid token")
    return token
