"""Person ledger endpoints."""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query, Request

from person_ledger.api.auth import require_user
from person_ledger.api.ledger_models import (
    AddEntryResponse,
    CreatePersonResponse,
    DetailOut,
    EntryRequest,
    MessageResponse,
    PersonOut,
)

if TYPE_CHECKING:
    from person_ledger.containers import AppContainer

router = APIRouter(tags=["ledger"])


@router.post("/create-person")
def create_person(
    body: EntryRequest, request: Request, user_id: str = Depends(require_user)
) -> CreatePersonResponse:
    """Create a person with its first daily entry."""
    container: AppContainer = request.app.state.container
    person_id = container.ledger_service.create_person(user_id, **body.model_dump())
    return CreatePersonResponse(
        message="Person and first daily entry added", person_id=person_id
    )


@router.post("/person/{person_id}/add-entry")
def add_entry(
    person_id: str,
    body: EntryRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> AddEntryResponse:
    """Append entries for a date to an owned person."""
    container: AppContainer = request.app.state.container
    total = container.ledger_service.add_entry(
        user_id, person_id, **body.model_dump()
    )
    return AddEntryResponse(
        message="Entry added/updated successfully", total_quantity=total
    )


@router.get("/persons")
def list_persons(
    request: Request, user_id: str = Depends(require_user)
) -> list[PersonOut]:
    """Return every person owned by the caller."""
    container: AppContainer = request.app.state.container
    persons = container.ledger_service.list_persons(user_id)
    return [PersonOut.from_domain(person) for person in persons]


@router.get("/persons/search")
def search_persons(
    request: Request,
    name: str | None = None,
    user_id: str = Depends(require_user),
) -> list[PersonOut]:
    """Return owned persons whose name starts with ``name``."""
    container: AppContainer = request.app.state.container
    persons = container.ledger_service.search_persons(user_id, name)
    return [PersonOut.from_domain(person) for person in persons]


@router.get("/person/{person_id}/details")
def list_details(
    person_id: str,
    request: Request,
    last_visible: str | None = Query(default=None, alias="lastVisibleDate"),
    page_size: int | None = Query(default=None, alias="pageSize"),
    user_id: str = Depends(require_user),
) -> list[DetailOut]:
    """Return a page of daily details, newest first."""
    container: AppContainer = request.app.state.container
    details = container.ledger_service.list_details(
        user_id, person_id, last_visible=last_visible, page_size=page_size
    )
    return [DetailOut.from_domain(detail) for detail in details]


@router.delete("/person-delete/{person_id}")
def delete_person(
    person_id: str, request: Request, user_id: str = Depends(require_user)
) -> MessageResponse:
    """Delete an owned person with all of its details."""
    container: AppContainer = request.app.state.container
    container.ledger_service.delete_person(user_id, person_id)
    return MessageResponse(message="Person and their details deleted successfully")
