"""Speech ingestion endpoints."""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from person_ledger.api.auth import require_user
from person_ledger.api.ledger_models import TranscriptionResponse, VoiceEntryResponse
from person_ledger.domain.ingestion import AudioUpload
from person_ledger.errors import ValidationError

if TYPE_CHECKING:
    from person_ledger.containers import AppContainer

router = APIRouter(tags=["ingestion"])


@router.post("/transcribe", dependencies=[Depends(require_user)])
async def transcribe(
    request: Request, audio: UploadFile | None = File(default=None)
) -> TranscriptionResponse:
    """Transcribe uploaded audio and extract a candidate entry."""
    container: AppContainer = request.app.state.container
    upload = await _read_upload(audio)
    result = await container.ingestion_service.transcribe(upload)
    return TranscriptionResponse(
        transcription=result.transcription, output=result.output
    )


@router.post("/voice-entry")
async def voice_entry(
    request: Request,
    audio: UploadFile | None = File(default=None),
    selected_date: str = Form(default=""),
    person_id: str | None = Form(default=None),
    user_id: str = Depends(require_user),
) -> VoiceEntryResponse:
    """Transcribe audio and record it as a new person or an added entry."""
    container: AppContainer = request.app.state.container
    upload = await _read_upload(audio)
    submitted = await container.ingestion_service.submit(
        user_id, upload, selected_date, person_id=person_id or None
    )
    message = (
        "Person and first daily entry added"
        if submitted.created
        else "Entry added/updated successfully"
    )
    return VoiceEntryResponse(
        message=message,
        person_id=submitted.person_id,
        total_quantity=submitted.total_quantity,
        transcription=submitted.result.transcription,
        output=submitted.result.output,
    )


async def _read_upload(audio: UploadFile | None) -> AudioUpload:
    if audio is None:
        raise ValidationError("No audio file uploaded")
    content = await audio.read()
    if not content:
        raise ValidationError("No audio file uploaded")
    return AudioUpload(
        content=content,
        filename=audio.filename or "audio",
        content_type=audio.content_type or "application/octet-stream",
    )
