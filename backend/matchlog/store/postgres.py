import json
from collections.abc import Sequence
from typing import Any

import asyncpg
from databases import Database
from heliclockter import datetime_utc

from matchlog.models.collections import Collection
from matchlog.schema import collection_tables
from matchlog.store.base import Document
from matchlog.store.exceptions import StoreQueryFailure, StoreWriteFailure

_STORE_ERRORS = (asyncpg.PostgresError, OSError)


def _table_name(collection: Collection) -> str:
    return collection_tables[collection].name


def _load_doc(raw: Any) -> Document:
    if raw is None:
        return {}
    if isinstance(raw, str | bytes):
        return json.loads(raw)
    return dict(raw)


class PostgresDocumentStore:
    """
    Document store on top of one JSONB table per collection.

    Merge writes rely on the JSONB `||` operator, which replaces top-level keys present in the
    right operand and keeps all others, matching the field-level merge the aggregates expect.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def query_events_by_field(
        self, collection: Collection, field: str, value: Any
    ) -> Sequence[Document]:
        query = f"""
            SELECT key, doc
            FROM {_table_name(collection)}
            WHERE doc -> :field = CAST(:value AS JSONB)
            ORDER BY created, key
            """
        try:
            rows = await self.database.fetch_all(
                query=query, values={"field": field, "value": json.dumps(value)}
            )
        except _STORE_ERRORS as exc:
            raise StoreQueryFailure(
                f"Querying {collection} by {field}={value!r} failed: {exc}"
            ) from exc

        return [_load_doc(row._mapping["doc"]) for row in rows]

    async def merge_write(self, collection: Collection, key: str, partial: Document) -> None:
        table = _table_name(collection)
        query = f"""
            INSERT INTO {table} (key, doc, updated)
            VALUES (:key, CAST(:doc AS JSONB), :updated)
            ON CONFLICT (key)
            DO UPDATE
            SET
                doc = {table}.doc || EXCLUDED.doc,
                updated = EXCLUDED.updated
            """
        try:
            await self.database.execute(
                query=query,
                values={"key": key, "doc": json.dumps(partial), "updated": datetime_utc.now()},
            )
        except _STORE_ERRORS as exc:
            raise StoreWriteFailure(f"Writing {collection}/{key} failed: {exc}") from exc

    async def get_document(self, collection: Collection, key: str) -> Document | None:
        query = f"SELECT doc FROM {_table_name(collection)} WHERE key = :key"
        try:
            row = await self.database.fetch_one(query=query, values={"key": key})
        except _STORE_ERRORS as exc:
            raise StoreQueryFailure(f"Reading {collection}/{key} failed: {exc}") from exc

        return _load_doc(row._mapping["doc"]) if row is not None else None

    async def list_documents(self, collection: Collection) -> Sequence[tuple[str, Document]]:
        query = f"SELECT key, doc FROM {_table_name(collection)} ORDER BY key"
        try:
            rows = await self.database.fetch_all(query=query)
        except _STORE_ERRORS as exc:
            raise StoreQueryFailure(f"Listing {collection} failed: {exc}") from exc

        return [(row._mapping["key"], _load_doc(row._mapping["doc"])) for row in rows]

    async def delete_document(self, collection: Collection, key: str) -> None:
        query = f"DELETE FROM {_table_name(collection)} WHERE key = :key"
        try:
            await self.database.execute(query=query, values={"key": key})
        except _STORE_ERRORS as exc:
            raise StoreWriteFailure(f"Deleting {collection}/{key} failed: {exc}") from exc
