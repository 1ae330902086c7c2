"""
persister.py
Writes a validated batch of Records to the document store in one bulk insert.
"""

from typing import List

from pymongo.collection import Collection
from pymongo.errors import (
    AutoReconnect,
    BulkWriteError,
    ConnectionFailure,
    NetworkTimeout,
    PyMongoError,
    ServerSelectionTimeoutError,
)

from excel_import.models.ingestion import Record
from excel_import.services.errors import PersistenceError
from excel_import.utils.logging_config import logger

DUPLICATE_KEY_CODE = 11000
CONNECTION_ERRORS = (ConnectionFailure, ServerSelectionTimeoutError, AutoReconnect, NetworkTimeout)

class BulkPersister:
    """All-or-nothing bulk insert of Records into one collection.

    The batch's emails are checked against the collection first. If the store
    still reports a duplicate (another upload won the race), the documents
    that were inserted before the conflict are deleted again.
    """
    def __init__(self, collection: Collection):
        self.collection = collection

    def insert_records(self, records: List[Record]) -> int:
        if not records:
            logger.info("No records to insert (empty batch).")
            return 0

        documents = [record.model_dump() for record in records]
        emails = [doc["email"] for doc in documents]
        try:
            self._check_existing(emails)
            result = self.collection.insert_many(documents, ordered=True)
        except PersistenceError:
            raise
        except BulkWriteError as e:
            self._rollback(documents, e.details.get("nInserted", 0))
            raise self._from_bulk_error(e) from e
        except CONNECTION_ERRORS as e:
            logger.error(f"MongoDB unavailable during bulk insert: {e}")
            raise PersistenceError(PersistenceError.CONNECTION_UNAVAILABLE, str(e)) from e
        except PyMongoError as e:
            logger.error(f"Bulk insert failed: {e}")
            raise PersistenceError(PersistenceError.UNKNOWN, str(e)) from e

        inserted = len(result.inserted_ids)
        logger.info(f"Inserted {inserted} documents into '{self.collection.name}'.")
        return inserted

    def _check_existing(self, emails: List[str]):
        existing = sorted(
            doc["email"] for doc in self.collection.find({"email": {"$in": emails}}, {"email": 1, "_id": 0})
        )
        if existing:
            raise PersistenceError(
                PersistenceError.DUPLICATE_KEY,
                f"duplicate email already stored: {', '.join(existing)}",
            )

    def _rollback(self, documents: List[dict], inserted: int):
        ids = [doc["_id"] for doc in documents[:inserted] if "_id" in doc]
        if not ids:
            return
        logger.warning(f"Bulk insert partially applied; removing {len(ids)} inserted documents.")
        try:
            self.collection.delete_many({"_id": {"$in": ids}})
        except PyMongoError as e:
            logger.error(f"Failed to roll back {len(ids)} partially inserted documents: {e}")

    def _from_bulk_error(self, error: BulkWriteError) -> PersistenceError:
        write_errors = error.details.get("writeErrors", [])
        duplicates = []
        for write_error in write_errors:
            if write_error.get("code") != DUPLICATE_KEY_CODE:
                continue
            key = write_error.get("keyValue") or {}
            op = write_error.get("op") or {}
            duplicates.append(str(key.get("email") or op.get("email") or write_error.get("errmsg")))
        if duplicates:
            return PersistenceError(PersistenceError.DUPLICATE_KEY, f"duplicate email: {', '.join(duplicates)}")
        messages = "; ".join(str(w.get("errmsg")) for w in write_errors) or str(error)
        return PersistenceError(PersistenceError.UNKNOWN, messages)
