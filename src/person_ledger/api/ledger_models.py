"""Pydantic models for ledger request and response bodies."""

from datetime import date

from pydantic import BaseModel, Field, StrictFloat, StrictInt

from person_ledger.domain.ingestion import ExtractedEntry
from person_ledger.domain.ledger import Detail, Person


class EntryRequest(BaseModel):
    """Body for creating a person or adding an entry."""

    name: str = ""
    selected_date: str = ""
    quantity_entries: list[StrictInt | StrictFloat] = Field(default_factory=list)
    item: str | None = ""
    unit: str | None = ""


class PersonOut(BaseModel):
    """Person as returned to clients."""

    id: str
    owner_id: str
    name: str
    item: str
    unit: str
    total_quantity: float
    created_at: str
    modified_at: str

    @classmethod
    def from_domain(cls, person: Person) -> "PersonOut":
        return cls(
            id=person.id,
            owner_id=person.owner_id,
            name=person.name,
            item=person.item,
            unit=person.unit,
            total_quantity=person.total_quantity,
            created_at=person.created_at,
            modified_at=person.modified_at,
        )


class DetailOut(BaseModel):
    """Daily detail as returned to clients."""

    id: str
    selected_date: date
    quantity_entries: list[float]
    item: str
    unit: str
    total_quantity: float
    created_date: str
    modified_date: str

    @classmethod
    def from_domain(cls, detail: Detail) -> "DetailOut":
        return cls(
            id=detail.id,
            selected_date=detail.selected_date,
            quantity_entries=detail.quantity_entries,
            item=detail.item,
            unit=detail.unit,
            total_quantity=detail.total_quantity,
            created_date=detail.created_date,
            modified_date=detail.modified_date,
        )


class CreatePersonResponse(BaseModel):
    message: str
    person_id: str


class AddEntryResponse(BaseModel):
    message: str
    total_quantity: float


class MessageResponse(BaseModel):
    message: str


class TranscriptionResponse(BaseModel):
    """Transcript and the entry extracted from it."""

    transcription: str
    output: ExtractedEntry


class VoiceEntryResponse(BaseModel):
    """Result of recording a spoken entry."""

    message: str
    person_id: str
    total_quantity: float
    transcription: str
    output: ExtractedEntry
