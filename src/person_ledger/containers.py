"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from person_ledger.adapters.elevenlabs_client import HttpxElevenLabsClient
from person_ledger.adapters.openai_extraction_client import OpenAIExtractionClient
from person_ledger.adapters.supabase_document_store import SupabaseDocumentStore
from person_ledger.adapters.supabase_identity_verifier import (
    SupabaseIdentityVerifier,
)
from person_ledger.config import Settings
from person_ledger.services.auth import AuthService
from person_ledger.services.ingestion import IngestionService
from person_ledger.services.ledger import LedgerService
from person_ledger.services.ledger_repository import LedgerRepository


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    auth_service: AuthService
    ledger_service: LedgerService
    ingestion_service: IngestionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    ledger_service = LedgerService(
        LedgerRepository(SupabaseDocumentStore(supabase_client))
    )
    auth_service = AuthService(SupabaseIdentityVerifier(supabase_client))
    transcription_client = HttpxElevenLabsClient.create(
        api_key=resolved_settings.elevenlabs_api_key,
        base_url=resolved_settings.elevenlabs_base_url,
        model_id=resolved_settings.elevenlabs_model_id,
        language_code=resolved_settings.transcription_language_code,
    )
    extraction_client = OpenAIExtractionClient.create(resolved_settings.openai_api_key)
    ingestion_service = IngestionService(
        transcription_client=transcription_client,
        extraction_client=extraction_client,
        ledger_service=ledger_service,
        model=resolved_settings.openai_model,
        language=resolved_settings.extraction_language,
        timeout_seconds=resolved_settings.upstream_timeout_seconds,
    )

    async def close_resources() -> None:
        await transcription_client.close()
        await extraction_client.close()

    return AppContainer(
        settings=resolved_settings,
        auth_service=auth_service,
        ledger_service=ledger_service,
        ingestion_service=ingestion_service,
        close_resources=close_resources,
    )
