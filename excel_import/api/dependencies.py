from functools import lru_cache
from excel_import.services.ingestion_service import IngestionService
from excel_import.services.persister import BulkPersister
from excel_import.utils.mongo_client import MongoClientWrapper

@lru_cache(maxsize=1)
def get_mongo_client() -> MongoClientWrapper:
    return MongoClientWrapper()

def get_ingestion_service() -> IngestionService:
    """Fresh orchestrator per request over the shared store connection."""
    mongo = get_mongo_client()
    return IngestionService(persister=BulkPersister(mongo.collection))
