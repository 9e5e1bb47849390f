import copy
from collections.abc import Sequence
from typing import Any

from matchlog.models.collections import Collection
from matchlog.store.base import Document


class InMemoryDocumentStore:
    """Dictionary backed store, used in CI and for local runs without a database."""

    def __init__(self, initial: dict[Collection, dict[str, Document]] | None = None) -> None:
        self.collections: dict[Collection, dict[str, Document]] = {
            collection: {} for collection in Collection
        }
        for collection, documents in (initial or {}).items():
            for key, document in documents.items():
                self.collections[collection][key] = copy.deepcopy(document)

    async def query_events_by_field(
        self, collection: Collection, field: str, value: Any
    ) -> Sequence[Document]:
        return [
            copy.deepcopy(document)
            for document in self.collections[collection].values()
            if field in document and document[field] == value
        ]

    async def merge_write(self, collection: Collection, key: str, partial: Document) -> None:
        existing = self.collections[collection].setdefault(key, {})
        existing.update(copy.deepcopy(partial))

    async def get_document(self, collection: Collection, key: str) -> Document | None:
        document = self.collections[collection].get(key)
        return copy.deepcopy(document) if document is not None else None

    async def list_documents(self, collection: Collection) -> Sequence[tuple[str, Document]]:
        return [
            (key, copy.deepcopy(document))
            for key, document in self.collections[collection].items()
        ]

    async def delete_document(self, collection: Collection, key: str) -> None:
        self.collections[collection].pop(key, None)
