import asyncio
import time
import weakref
from collections import Counter
from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import quote, unquote

from matchlog.config import config
from matchlog.logic.aggregates.counts import event_counts, win_rate_percent
from matchlog.models.aggregates import (
    DayAggregate,
    DeckAggregate,
    OpponentAggregate,
    TournamentAggregate,
    TournamentDeckBreakdown,
    TournamentMeta,
    TournamentMirror,
)
from matchlog.models.collections import Collection
from matchlog.models.counts import OutcomeCounts
from matchlog.store.base import Document, DocumentStore
from matchlog.utils.coerce import as_number, value_to_millis
from matchlog.utils.id_types import DateKey, DeckKey, TournamentId
from matchlog.utils.logging import logger

MAX_DECK_POKEMON_HINTS = 2

_recompute_locks: weakref.WeakValueDictionary[tuple[Collection, str], asyncio.Lock] = (
    weakref.WeakValueDictionary()
)


def safe_doc_id(value: str) -> str:
    return quote(str(value), safe="!~*'()")


@asynccontextmanager
async def _recompute_scope(collection: Collection, key: str) -> AsyncIterator[None]:
    """Serialize recomputes of one aggregate document and warn when they are slow."""
    lock = _recompute_locks.get((collection, key))
    if lock is None:
        lock = asyncio.Lock()
        _recompute_locks[(collection, key)] = lock

    async with lock:
        started_at = time.monotonic()
        yield
        duration_ms = int((time.monotonic() - started_at) * 1000)

    if duration_ms >= config.recompute_warn_ms:
        logger.warning(
            "Aggregate recompute was slow: collection=%s key=%s duration_ms=%s",
            collection,
            key,
            duration_ms,
        )


def fold_counts(events: Iterable[Mapping[str, Any]]) -> OutcomeCounts:
    counts = OutcomeCounts()
    for event in events:
        counts += event_counts(event)
    return counts


def _pokemon_slug(raw: Any) -> str | None:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, Mapping):
        for field in ("slug", "name", "id"):
            if isinstance(raw.get(field), str):
                return raw[field]
    return None


def collect_pokemon_hints(events: Iterable[Mapping[str, Any]]) -> list[str]:
    pokemons: list[str] = []
    for event in events:
        raw_pokemons = event.get("pokemons")
        if not isinstance(raw_pokemons, list):
            continue

        for raw in raw_pokemons:
            if len(pokemons) >= MAX_DECK_POKEMON_HINTS:
                return pokemons
            slug = (_pokemon_slug(raw) or "").strip()
            if slug != "" and slug not in pokemons:
                pokemons.append(slug)

    return pokemons


def build_deck_breakdowns(events: Sequence[Mapping[str, Any]]) -> list[TournamentDeckBreakdown]:
    """Per-deck breakdown of tournament events, in order of first appearance of each deck."""
    events_per_deck: dict[str, list[Mapping[str, Any]]] = {}
    for event in events:
        deck_key = event.get("playerDeckKey") or event.get("deckKey") or ""
        events_per_deck.setdefault(deck_key, []).append(event)

    breakdowns = []
    for deck_key, deck_events in events_per_deck.items():
        counts = fold_counts(deck_events)
        breakdowns.append(
            TournamentDeckBreakdown(
                deck_key=DeckKey(deck_key),
                counts=counts,
                games=len(deck_events),
                wr=win_rate_percent(counts),
            )
        )
    return breakdowns


def _reference_score(event: Mapping[str, Any]) -> tuple[float, float]:
    rounds_count = as_number(event.get("roundsCount"))
    timestamp = max(
        value_to_millis(event.get(field))
        for field in ("updatedAt", "createdAt", "dateISO", "date", "time")
    )
    return (-1 if rounds_count is None else rounds_count), timestamp


def pick_tournament_reference(events: Iterable[Mapping[str, Any]]) -> Mapping[str, Any] | None:
    """
    Pick the event describing a tournament best: the one with the most rounds, and among
    those the most recently touched one. Earlier events win ties.
    """
    reference: Mapping[str, Any] | None = None
    for event in events:
        if reference is None or _reference_score(event) > _reference_score(reference):
            reference = event
    return reference


def _first_text(event: Mapping[str, Any], *fields: str) -> str | None:
    for field in fields:
        value = event.get(field)
        if isinstance(value, str) and value != "":
            return value
    return None


def extract_tournament_meta(event: Mapping[str, Any] | None) -> TournamentMeta:
    if event is None:
        return TournamentMeta()

    return TournamentMeta(
        name=_first_text(event, "tourneyName", "tournamentName", "name"),
        date_iso=_first_text(event, "dateISO", "date"),
        format=_first_text(event, "format"),
        deck=_first_text(event, "playerDeckKey", "deckKey"),
        deck_name=_first_text(event, "deckName", "playerDeckName", "playerDeck", "deck"),
        rounds_count=as_number(event.get("roundsCount")),
    )


def pick_top_opponent_deck(
    events: Iterable[Mapping[str, Any]],
) -> tuple[DeckKey | None, str | None]:
    """Most played opponent deck, the first one seen wins ties."""
    deck_names: dict[str, str | None] = {}
    plays: Counter[str] = Counter()
    for event in events:
        deck_key = event.get("opponentDeckKey")
        if not isinstance(deck_key, str) or deck_key == "":
            continue
        plays[deck_key] += 1
        if deck_names.get(deck_key) is None:
            deck_names[deck_key] = _first_text(event, "opponentDeck", "opponentDeckName")

    if not plays:
        return None, None
    top_deck_key, _ = plays.most_common(1)[0]
    return DeckKey(top_deck_key), deck_names[top_deck_key]


async def recompute_day(store: DocumentStore, date: DateKey | None) -> DayAggregate | None:
    if not date:
        return None

    async with _recompute_scope(Collection.PHYSICAL_DAYS, date):
        events = await store.query_events_by_field(Collection.PHYSICAL_EVENTS, "date", date)
        counts = fold_counts(events)
        aggregate = DayAggregate(date=date, counts=counts, wr=win_rate_percent(counts))
        await store.merge_write(Collection.PHYSICAL_DAYS, date, aggregate.to_document())

    return aggregate


async def recompute_deck(store: DocumentStore, deck_key: DeckKey | None) -> DeckAggregate | None:
    if not deck_key:
        return None

    doc_id = safe_doc_id(deck_key)
    async with _recompute_scope(Collection.PHYSICAL_DECKS_AGG, doc_id):
        events = await store.query_events_by_field(
            Collection.PHYSICAL_EVENTS, "playerDeckKey", deck_key
        )
        counts = fold_counts(events)
        aggregate = DeckAggregate(
            deck_key=deck_key,
            games=len(events),
            counts=counts,
            wr=win_rate_percent(counts),
            pokemons=collect_pokemon_hints(events),
        )
        await store.merge_write(Collection.PHYSICAL_DECKS_AGG, doc_id, aggregate.to_document())

    return aggregate


async def recompute_tournament(
    store: DocumentStore, tournament_id: TournamentId | None
) -> TournamentAggregate | None:
    if not tournament_id:
        return None

    async with _recompute_scope(Collection.PHYSICAL_TOURNAMENTS_AGG, tournament_id):
        events = await store.query_events_by_field(
            Collection.PHYSICAL_EVENTS, "tournamentId", tournament_id
        )
        counts = fold_counts(events)
        meta = extract_tournament_meta(pick_tournament_reference(events))
        aggregate = TournamentAggregate(
            **meta.model_dump(),
            tournament_id=tournament_id,
            counts=counts,
            wr=win_rate_percent(counts),
            decks=build_deck_breakdowns(events),
        )
        await store.merge_write(
            Collection.PHYSICAL_TOURNAMENTS_AGG, tournament_id, aggregate.to_document()
        )

        mirror = TournamentMirror(
            tournament_id=tournament_id, source=config.tournament_mirror_source
        )
        await store.merge_write(Collection.TOURNAMENTS, tournament_id, mirror.to_document())

    return aggregate


async def recompute_opponent(
    store: DocumentStore, opponent: str | None
) -> OpponentAggregate | None:
    if not opponent:
        return None

    doc_id = safe_doc_id(opponent)
    async with _recompute_scope(Collection.PHYSICAL_OPPONENTS_AGG, doc_id):
        events = await store.query_events_by_field(
            Collection.PHYSICAL_EVENTS, "opponent", opponent
        )
        counts = fold_counts(events)
        top_deck_key, top_deck_name = pick_top_opponent_deck(events)
        aggregate = OpponentAggregate(
            opponent=opponent,
            games=len(events),
            counts=counts,
            wr=win_rate_percent(counts),
            top_deck_key=top_deck_key,
            top_deck_name=top_deck_name,
        )
        await store.merge_write(
            Collection.PHYSICAL_OPPONENTS_AGG, doc_id, aggregate.to_document()
        )

    return aggregate


def _distinct_values(field: str, *events: Document | None) -> list[Any]:
    values: list[Any] = []
    for event in events:
        if event is None:
            continue
        value = event.get(field)
        if value and value not in values:
            values.append(value)
    return values


async def recompute_all_for_event(
    store: DocumentStore, previous: Document | None, current: Document | None
) -> None:
    """
    Recompute every aggregate touched by an event mutation.

    Both versions of the event are considered, so moving an event to another day, deck,
    tournament or opponent also resets the aggregate it left. The first failure cancels the
    recomputes still running and is raised as is.
    """
    try:
        async with asyncio.TaskGroup() as task_group:
            for date in _distinct_values("date", previous, current):
                task_group.create_task(recompute_day(store, date))
            for deck_key in _distinct_values("playerDeckKey", previous, current):
                task_group.create_task(recompute_deck(store, deck_key))
            for tournament_id in _distinct_values("tournamentId", previous, current):
                task_group.create_task(recompute_tournament(store, tournament_id))
            for opponent in _distinct_values("opponent", previous, current):
                task_group.create_task(recompute_opponent(store, opponent))
    except ExceptionGroup as exc_group:
        raise exc_group.exceptions[0] from exc_group


async def recompute_all_deck_aggregates(store: DocumentStore) -> list[DeckKey]:
    deck_keys: list[DeckKey] = []
    for doc_id, document in await store.list_documents(Collection.PHYSICAL_DECKS_AGG):
        deck_key = document.get("deckKey") or unquote(doc_id)
        if deck_key and deck_key not in deck_keys:
            deck_keys.append(DeckKey(deck_key))

    processed: list[DeckKey] = []
    for deck_key in deck_keys:
        try:
            await recompute_deck(store, deck_key)
        except Exception:
            logger.exception("Failed to recompute deck aggregate: deck_key=%s", deck_key)
            continue
        processed.append(deck_key)

    return processed
