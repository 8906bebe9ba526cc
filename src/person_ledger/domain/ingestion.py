"""Models for the speech ingestion pipeline."""

from dataclasses import dataclass

from pydantic import BaseModel


class ExtractedEntry(BaseModel):
    """Structured entry extracted from a transcript."""

    name: str
    quantity: float
    unit: str | None = None
    item: str | None = None


@dataclass(frozen=True)
class AudioUpload:
    """Raw audio received from a client."""

    content: bytes
    filename: str
    content_type: str


@dataclass(frozen=True)
class IngestionResult:
    """Transcript together with the entry extracted from it."""

    transcription: str
    output: ExtractedEntry


@dataclass(frozen=True)
class SubmittedEntry:
    """Outcome of recording a spoken entry in the ledger."""

    person_id: str
    total_quantity: float
    created: bool
    result: IngestionResult
