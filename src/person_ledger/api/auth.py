"""Bearer token dependency for ledger endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Header, Request

if TYPE_CHECKING:
    from person_ledger.containers import AppContainer


def require_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> str:
    """Resolve the bearer token to the authenticated user id."""
    container: AppContainer = request.app.state.container
    return container.auth_service.authenticate(authorization)
