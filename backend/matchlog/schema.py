from sqlalchemy import Column, String, Table, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base  # type: ignore[attr-defined]
from sqlalchemy.sql.sqltypes import DateTime

from matchlog.models.collections import Collection

Base = declarative_base()
metadata = Base.metadata
DateTimeTZ = DateTime(timezone=True)


def _document_table(name: str) -> Table:
    return Table(
        name,
        metadata,
        Column("key", String, primary_key=True, index=True),
        Column("doc", JSONB, nullable=False, server_default="{}"),
        Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
        Column("updated", DateTimeTZ, nullable=False, server_default=func.now()),
    )


physical_events = _document_table("physical_events")
physical_days = _document_table("physical_days")
physical_decks_agg = _document_table("physical_decks_agg")
physical_tournaments_agg = _document_table("physical_tournaments_agg")
physical_opponents_agg = _document_table("physical_opponents_agg")
tournaments = _document_table("tournaments")

collection_tables: dict[Collection, Table] = {
    Collection.PHYSICAL_EVENTS: physical_events,
    Collection.PHYSICAL_DAYS: physical_days,
    Collection.PHYSICAL_DECKS_AGG: physical_decks_agg,
    Collection.PHYSICAL_TOURNAMENTS_AGG: physical_tournaments_agg,
    Collection.PHYSICAL_OPPONENTS_AGG: physical_opponents_agg,
    Collection.TOURNAMENTS: tournaments,
}
