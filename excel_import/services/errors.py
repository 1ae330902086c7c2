"""
errors.py
Failure kinds raised inside the ingestion pipeline. The orchestrator turns each
of them into an IngestionResult; none of them reach the HTTP layer.
"""


class IngestionError(Exception):
    """Base class for every pipeline failure."""

    error_kind = "Unknown"


class NoFileError(IngestionError):
    error_kind = "NoFile"

    def __init__(self, message: str = "No file uploaded."):
        super().__init__(message)


class DecodeError(IngestionError):
    error_kind = "DecodeError"


class ValidationError(IngestionError):
    """A row that cannot be mapped onto a Record."""

    error_kind = "ValidationError"

    def __init__(self, row: int, field: str, reason: str):
        self.row = row
        self.field = field
        self.reason = reason
        super().__init__(f"Row {row}: field '{field}' {reason}")


class PersistenceError(IngestionError):
    DUPLICATE_KEY = "DuplicateKey"
    CONNECTION_UNAVAILABLE = "ConnectionUnavailable"
    UNKNOWN = "Unknown"

    error_kind = "PersistenceError"

    def __init__(self, kind: str, detail: str):
        self.kind = kind
        self.detail = detail
        self.error_kind = kind
        super().__init__(f"{kind}: {detail}")


class CleanupError(IngestionError):
    """Deleting the staged upload failed. Logged, never returned to the caller."""

    error_kind = "CleanupError"
