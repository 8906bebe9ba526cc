"""Speech ingestion: audio to transcript to a ledger entry."""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from pydantic import ValidationError as PydanticValidationError

from person_ledger.domain.ingestion import (
    AudioUpload,
    ExtractedEntry,
    IngestionResult,
    SubmittedEntry,
)
from person_ledger.errors import UpstreamError, ValidationError
from person_ledger.services.ledger import LedgerService

T = TypeVar("T")

logger = logging.getLogger(__name__)

EXTRACTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "quantity": {"type": "number"},
        "unit": {"anyOf": [{"type": "string"}, {"type": "null"}]},
        "item": {"anyOf": [{"type": "string"}, {"type": "null"}]},
    },
    "required": ["name", "quantity", "unit", "item"],
    "additionalProperties": False,
}


class TranscriptionClient(Protocol):
    """Interface for speech-to-text providers."""

    async def transcribe(self, audio: AudioUpload) -> str:
        """Return the transcript for the audio."""


class ExtractionClient(Protocol):
    """Interface for LLM structured extraction."""

    async def extract(
        self,
        *,
        model: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured data matching ``schema``."""


@dataclass
class IngestionService:
    """Turns recorded speech into ledger entries."""

    transcription_client: TranscriptionClient
    extraction_client: ExtractionClient
    ledger_service: LedgerService
    model: str
    language: str
    timeout_seconds: float

    async def transcribe(self, audio: AudioUpload) -> IngestionResult:
        """Transcribe audio and extract a candidate entry from the text."""
        if not audio.content:
            raise ValidationError("No audio file uploaded")
        text = await self._bounded(
            self.transcription_client.transcribe(audio), "Transcription"
        )
        if not text.strip():
            raise UpstreamError("Transcription returned no text")
        raw = await self._bounded(
            self.extraction_client.extract(
                model=self.model,
                schema=EXTRACTION_SCHEMA,
                prompt=_build_prompt(self.language, text),
            ),
            "Extraction",
        )
        try:
            output = ExtractedEntry.model_validate(raw)
        except PydanticValidationError as exc:
            raise UpstreamError("Extraction returned an invalid entry") from exc
        return IngestionResult(transcription=text, output=output)

    async def submit(
        self,
        owner_id: str,
        audio: AudioUpload,
        selected_date: str,
        person_id: str | None = None,
    ) -> SubmittedEntry:
        """Transcribe audio and record it as a create or append request."""
        result = await self.transcribe(audio)
        entry = result.output
        if not entry.name.strip():
            raise UpstreamError("Extraction returned an entry without a name")
        fields = {
            "name": entry.name,
            "selected_date": selected_date,
            "quantity_entries": [entry.quantity],
            "item": entry.item or "",
            "unit": entry.unit or "",
        }
        if person_id:
            total = await asyncio.to_thread(
                self.ledger_service.add_entry, owner_id, person_id, **fields
            )
            return SubmittedEntry(
                person_id=person_id, total_quantity=total, created=False, result=result
            )
        new_id = await asyncio.to_thread(
            self.ledger_service.create_person, owner_id, **fields
        )
        return SubmittedEntry(
            person_id=new_id,
            total_quantity=entry.quantity,
            created=True,
            result=result,
        )

    async def _bounded(self, awaitable: Awaitable[T], label: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except TimeoutError as exc:
            logger.warning("%s timed out", label, extra={"timeout": self.timeout_seconds})
            raise UpstreamError(f"{label} timed out") from exc


def _build_prompt(language: str, transcript: str) -> str:
    return (
        f"Read the following {language} sentence and:\n"
        "1. Extract the name, quantity (convert spoken number words to digits), "
        'unit (convert unit words such as కేజీలు or కేజీ to "kg"), and item, if any.\n'
        "2. Return only a JSON object with keys: name, quantity, unit, item.\n"
        "3. Use null for a missing unit or item.\n\n"
        f"Sentence: {transcript}"
    )
