from collections.abc import Sequence
from typing import Any, Protocol

from matchlog.models.collections import Collection

Document = dict[str, Any]


class DocumentStore(Protocol):
    """
    Minimal document store contract used by the aggregation engine.

    Queries are equality filters on a single top-level field. Merge writes upsert the document
    at `key`, replacing the given top-level fields and leaving every other field untouched.
    """

    async def query_events_by_field(
        self, collection: Collection, field: str, value: Any
    ) -> Sequence[Document]: ...

    async def merge_write(self, collection: Collection, key: str, partial: Document) -> None: ...

    async def get_document(self, collection: Collection, key: str) -> Document | None: ...

    async def list_documents(self, collection: Collection) -> Sequence[tuple[str, Document]]: ...

    async def delete_document(self, collection: Collection, key: str) -> None: ...
