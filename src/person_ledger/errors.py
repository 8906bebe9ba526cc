"""Error taxonomy shared by services, adapters and the HTTP layer."""


class LedgerError(Exception):
    """Base error carrying a human-readable message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Malformed or missing input."""


class AuthError(LedgerError):
    """Missing or invalid bearer credential."""


class NotFoundError(LedgerError):
    """Target is absent or owned by someone else."""


class UpstreamError(LedgerError):
    """Transcription or extraction collaborator failed or timed out."""


class StoreError(LedgerError):
    """Underlying persistence failure."""


class DuplicateDocumentError(StoreError):
    """Insert violated a uniqueness constraint."""
