from matchlog.store.base import Document, DocumentStore
from matchlog.store.exceptions import StoreError, StoreQueryFailure, StoreWriteFailure

__all__ = [
    "Document",
    "DocumentStore",
    "StoreError",
    "StoreQueryFailure",
    "StoreWriteFailure",
]
