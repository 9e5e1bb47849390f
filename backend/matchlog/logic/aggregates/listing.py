from urllib.parse import unquote

from matchlog.logic.aggregates.physical import safe_doc_id
from matchlog.models.aggregates import DeckAggregate, OpponentAggregate, TournamentAggregate
from matchlog.models.collections import Collection
from matchlog.models.event import PhysicalEvent
from matchlog.store.base import DocumentStore
from matchlog.utils.coerce import as_number, value_to_millis
from matchlog.utils.id_types import DateKey, TournamentId

MAX_LISTED_AGGREGATES = 50
MAX_LISTED_EVENTS = 200
MAX_LISTED_OPPONENTS = 500


async def list_day_events(store: DocumentStore, date: DateKey) -> list[PhysicalEvent]:
    """Events logged on a day, newest first."""
    events = await store.query_events_by_field(Collection.PHYSICAL_EVENTS, "date", date)
    newest_first = sorted(
        events, key=lambda event: value_to_millis(event.get("createdAt")), reverse=True
    )
    return [PhysicalEvent.model_validate(event) for event in newest_first[:MAX_LISTED_EVENTS]]


async def list_deck_aggregates(
    store: DocumentStore, deck: str | None = None
) -> list[DeckAggregate]:
    """Deck aggregates by descending win rate, or the single aggregate of `deck`."""
    if deck is not None and deck.strip() != "":
        deck_key = deck.strip().lower()
        document = await store.get_document(Collection.PHYSICAL_DECKS_AGG, safe_doc_id(deck_key))
        if document is None:
            return []
        return [DeckAggregate.model_validate({"deckKey": deck_key, **document})]

    decks = [
        DeckAggregate.model_validate({"deckKey": unquote(doc_id), **document})
        for doc_id, document in await store.list_documents(Collection.PHYSICAL_DECKS_AGG)
    ]
    decks.sort(key=lambda deck_aggregate: deck_aggregate.wr, reverse=True)
    return decks[:MAX_LISTED_AGGREGATES]


async def list_tournament_aggregates(
    store: DocumentStore, query: str | None = None
) -> list[TournamentAggregate]:
    """Tournament aggregates, most recent first, optionally filtered by name or id."""
    tournaments = [
        TournamentAggregate.model_validate({"tournamentId": doc_id, **document})
        for doc_id, document in await store.list_documents(Collection.PHYSICAL_TOURNAMENTS_AGG)
    ]
    tournaments.sort(key=lambda tournament: tournament.date_iso or "", reverse=True)

    needle = (query or "").strip().lower()
    if needle != "":
        tournaments = [
            tournament
            for tournament in tournaments
            if needle in (tournament.name or "").lower()
            or needle in tournament.tournament_id.lower()
        ]
    return tournaments[:MAX_LISTED_AGGREGATES]


async def get_tournament_aggregate(
    store: DocumentStore, tournament_id: TournamentId
) -> TournamentAggregate:
    document = await store.get_document(Collection.PHYSICAL_TOURNAMENTS_AGG, tournament_id)
    return TournamentAggregate.model_validate({"tournamentId": tournament_id, **(document or {})})


async def list_tournament_rounds(
    store: DocumentStore, tournament_id: TournamentId
) -> list[PhysicalEvent]:
    """Events of a tournament ordered by round, events without a round number last."""
    events = await store.query_events_by_field(
        Collection.PHYSICAL_EVENTS, "tournamentId", tournament_id
    )

    def round_order(event: dict) -> tuple[bool, int | float]:
        round_number = as_number(event.get("round"))
        return round_number is None, round_number or 0

    return [
        PhysicalEvent.model_validate(event)
        for event in sorted(events, key=round_order)[:MAX_LISTED_EVENTS]
    ]


async def list_opponent_aggregates(store: DocumentStore) -> list[OpponentAggregate]:
    opponents = [
        OpponentAggregate.model_validate({"opponent": unquote(doc_id), **document})
        for doc_id, document in await store.list_documents(Collection.PHYSICAL_OPPONENTS_AGG)
    ]
    opponents.sort(key=lambda opponent: opponent.opponent.lower())
    return opponents[:MAX_LISTED_OPPONENTS]
