"""ElevenLabs speech-to-text client."""

from dataclasses import dataclass

import httpx

from person_ledger.domain.ingestion import AudioUpload
from person_ledger.errors import UpstreamError
from person_ledger.services.ingestion import TranscriptionClient


@dataclass
class HttpxElevenLabsClient(TranscriptionClient):
    """HTTPX-backed ElevenLabs transcription client."""

    api_key: str
    base_url: str
    model_id: str
    language_code: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, api_key: str, base_url: str, model_id: str, language_code: str
    ) -> "HttpxElevenLabsClient":
        """Create a client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url,
            model_id=model_id,
            language_code=language_code,
            http_client=httpx.AsyncClient(),
        )

    async def transcribe(self, audio: AudioUpload) -> str:
        """Upload audio to the speech-to-text endpoint and return the text."""
        url = f"{self.base_url}/speech-to-text"
        try:
            response = await self.http_client.post(
                url,
                headers={"xi-api-key": self.api_key},
                data={
                    "model_id": self.model_id,
                    "language_code": self.language_code,
                    "diarize": "true",
                    "tag_audio_events": "true",
                },
                files={"file": (audio.filename, audio.content, audio.content_type)},
                timeout=60,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Transcription failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError("Transcription returned invalid JSON") from exc
        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            raise UpstreamError("Transcription response is missing text")
        return text

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
