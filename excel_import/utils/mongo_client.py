import os
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import OperationFailure, PyMongoError
from excel_import.utils.logging_config import logger

DEFAULT_URI = "mongodb://localhost:27017/excel_import_db"
DEFAULT_DATABASE = "excel_import_db"

class MongoClientWrapper:
    """Owns the MongoDB connection and the collection records are written to.

    Environment variables:
    - MONGODB_URI (default mongodb://localhost:27017/excel_import_db)
    - MONGODB_DATABASE (default: database named in the URI)
    - COLLECTION_NAME (default Data)
    - MONGODB_TIMEOUT_MS (int, default 5000)
    """
    def __init__(self, uri: str = None, database: str = None, collection_name: str = None):
        self.uri = uri or os.getenv("MONGODB_URI", DEFAULT_URI)
        timeout_ms = int(os.getenv("MONGODB_TIMEOUT_MS", "5000"))
        self.client = MongoClient(self.uri, serverSelectionTimeoutMS=timeout_ms)
        database = database or os.getenv("MONGODB_DATABASE")
        if database:
            self.db = self.client[database]
        else:
            self.db = self.client.get_default_database(default=DEFAULT_DATABASE)
        self.collection_name = collection_name or os.getenv("COLLECTION_NAME", "Data")
        self.collection: Collection = self.db[self.collection_name]

    def ensure_email_index(self):
        """Ensure the unique index on email exists so the store rejects duplicates."""
        try:
            self.collection.create_index([("email", ASCENDING)], unique=True, name="email_unique")
            logger.info(f"Unique index on 'email' ready for collection '{self.collection_name}'")
        except OperationFailure as e:
            # Existing documents may already violate uniqueness
            logger.warning(f"Could not create unique index on 'email': {e}")
        except PyMongoError as e:
            logger.warning(f"MongoDB unavailable while creating 'email' index: {e}")

    def close(self):
        self.client.close()
