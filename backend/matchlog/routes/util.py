from fastapi import Depends, HTTPException
from starlette import status

from matchlog.models.collections import Collection
from matchlog.store.base import Document, DocumentStore
from matchlog.store.provider import get_document_store
from matchlog.utils.id_types import EventId


async def event_dependency(
    event_id: EventId, store: DocumentStore = Depends(get_document_store)
) -> Document:
    event = await store.get_document(Collection.PHYSICAL_EVENTS, event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Could not find event with id {event_id}",
        )

    return event
