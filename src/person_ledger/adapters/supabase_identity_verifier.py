"""Supabase Auth identity verifier."""

from dataclasses import dataclass

from supabase import AuthError as SupabaseAuthError
from supabase import Client

from person_ledger.errors import AuthError
from person_ledger.services.auth import IdentityVerifier


@dataclass
class SupabaseIdentityVerifier(IdentityVerifier):
    """Verifies access tokens against Supabase Auth."""

    client: Client

    def verify(self, token: str) -> str:
        """Return the Supabase user id for the token."""
        try:
            response = self.client.auth.get_user(token)
        except SupabaseAuthError as exc:
            raise AuthError("Unauthorized: Invalid token") from exc
        if response is None or response.user is None:
            raise AuthError("Unauthorized: Invalid token")
        return str(response.user.id)
