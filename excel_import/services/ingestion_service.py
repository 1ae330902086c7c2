import os
from enum import Enum
from typing import Callable, List, Optional
from excel_import.models.ingestion import IngestionResult, RawRow, Record, UploadedFile
from excel_import.services.decoder import read_rows
from excel_import.services.errors import CleanupError, IngestionError, NoFileError
from excel_import.services.persister import BulkPersister
from excel_import.services.validator import validate_rows
from excel_import.utils.logging_config import logger

class IngestionState(str, Enum):
    IDLE = "Idle"
    RECEIVED = "Received"
    DECODED = "Decoded"
    VALIDATED = "Validated"
    PERSISTED = "Persisted"
    CLEANED = "Cleaned"
    FAILED = "Failed"

class IngestionRun:
    """State trail of a single ingestion; one instance per request."""
    def __init__(self, upload: Optional[UploadedFile]):
        self.upload = upload
        self.state = IngestionState.IDLE
        self.history: List[IngestionState] = [self.state]

    def advance(self, state: IngestionState):
        self.state = state
        self.history.append(state)

class IngestionService:
    def __init__(
        self,
        persister: BulkPersister,
        decode: Callable[[str], List[RawRow]] = read_rows,
        validate: Callable[[List[RawRow]], List[Record]] = validate_rows,
    ):
        self.persister = persister
        self.decode = decode
        self.validate = validate


    def ingest(self, upload: Optional[UploadedFile]) -> IngestionResult:
        """Run decode -> validate -> persist for one staged upload.

        Flow:
        - No upload -> NoFile result, nothing to clean up.
        - Any pipeline error stops the run and becomes an error result.
        - The staged file is removed on every path once it was received.
        """
        run = IngestionRun(upload)
        if upload is None:
            run.advance(IngestionState.FAILED)
            error = NoFileError()
            logger.warning("Upload rejected: no file supplied")
            return IngestionResult.failed(error.error_kind, str(error))

        try:
            return self._run_pipeline(run)
        finally:
            self._cleanup(run)
            logger.info(f"Ingestion of '{upload.filename}' finished: {' -> '.join(s.value for s in run.history)}")

    def _run_pipeline(self, run: IngestionRun) -> IngestionResult:
        upload = run.upload
        run.advance(IngestionState.RECEIVED)
        logger.info(f"Starting ingestion of '{upload.filename}' ({upload.size} bytes) into '{self.persister.collection.name}'")
        try:
            rows = self.decode(upload.path)
            run.advance(IngestionState.DECODED)

            records = self.validate(rows)
            run.advance(IngestionState.VALIDATED)

            inserted = self.persister.insert_records(records)
            run.advance(IngestionState.PERSISTED)
        except IngestionError as e:
            run.advance(IngestionState.FAILED)
            logger.warning(f"Ingestion of '{upload.filename}' rejected ({e.error_kind}): {e}")
            return IngestionResult.failed(e.error_kind, str(e))
        except Exception as e:
            run.advance(IngestionState.FAILED)
            logger.exception(f"Ingestion of '{upload.filename}' failed unexpectedly")
            return IngestionResult.failed("Unknown", str(e))

        logger.info(f"Ingestion of '{upload.filename}' succeeded: rows={len(rows)} inserted={inserted}")
        return IngestionResult.succeeded(inserted)

    def _cleanup(self, run: IngestionRun):
        try:
            remove_staged_file(run.upload.path)
        except CleanupError as e:
            logger.error(str(e))
        if run.state != IngestionState.FAILED:
            run.advance(IngestionState.CLEANED)

def remove_staged_file(path: str):
    """Delete a staged upload; a file that is already gone is fine."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise CleanupError(f"Failed to delete staged upload {path}: {e}") from e
