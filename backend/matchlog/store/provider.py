from functools import lru_cache

from matchlog.config import config
from matchlog.database import database
from matchlog.store.base import DocumentStore
from matchlog.store.memory import InMemoryDocumentStore
from matchlog.store.postgres import PostgresDocumentStore


@lru_cache(maxsize=1)
def get_document_store() -> DocumentStore:
    if config.store_backend == "memory":
        return InMemoryDocumentStore()
    return PostgresDocumentStore(database)
