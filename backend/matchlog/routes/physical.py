import re
import time
import uuid

from fastapi import APIRouter, Depends
from heliclockter import datetime_utc
from starlette import status

from matchlog.config import config
from matchlog.logic.aggregates.counts import win_rate_percent
from matchlog.logic.aggregates.listing import (
    get_tournament_aggregate,
    list_day_events,
    list_deck_aggregates,
    list_opponent_aggregates,
    list_tournament_aggregates,
    list_tournament_rounds,
)
from matchlog.logic.aggregates.physical import (
    fold_counts,
    recompute_all_for_event,
    recompute_day,
    recompute_deck,
    recompute_opponent,
    recompute_tournament,
)
from matchlog.logic.tournament_types import normalize_tournament_type_filter
from matchlog.models.aggregates import RecomputeBody
from matchlog.models.collections import Collection
from matchlog.models.event import PhysicalEvent, PhysicalEventCreateBody, PhysicalEventUpdateBody
from matchlog.routes.models import (
    DayDetailsResponse,
    DayDetailsView,
    DaySummary,
    DeckAggregatesResponse,
    EventCreatedResponse,
    EventCreatedView,
    OpponentAggregatesResponse,
    PhysicalEventResponse,
    RecomputeResponse,
    RecomputeView,
    SuccessResponse,
    TournamentAggregatesResponse,
    TournamentDetailsResponse,
    TournamentDetailsView,
    TournamentTypeResponse,
    TournamentTypeView,
)
from matchlog.routes.util import event_dependency
from matchlog.store.base import Document, DocumentStore
from matchlog.store.provider import get_document_store
from matchlog.utils.dates import date_key_from_millis, now_millis
from matchlog.utils.id_types import DateKey, EventId, TournamentId
from matchlog.utils.normalize import normalize_deck_key, normalize_name

MAX_EVENT_POKEMONS = 2
DEFAULT_EVENT_LANG = "pt"

_WHITESPACE = re.compile(r"\s+")

router = APIRouter(prefix=config.api_prefix)


def derive_tournament_id(
    limitless_id: str | None, tourney_name: str | None, date: DateKey
) -> TournamentId | None:
    if limitless_id:
        return TournamentId(f"limitless:{limitless_id}")
    if tourney_name:
        return TournamentId(f"manual:{_WHITESPACE.sub('-', tourney_name.lower())}:{date}")
    return None


def build_new_event(body: PhysicalEventCreateBody, now_ms: int) -> Document:
    """Stored representation of a newly logged event, with its derived keys filled in."""
    created_at = body.created_at or now_ms
    date = date_key_from_millis(created_at, config.event_timezone)
    deck_name = normalize_name(body.deck_name or "")
    opponent_deck = normalize_name(body.opponent_deck or "")

    event: Document = {
        "eventId": body.event_id or uuid.uuid4().hex,
        "source": "physical",
        "createdAt": created_at,
        "date": date,
        "you": normalize_name(body.you or "you"),
        "opponent": normalize_name(body.opponent or ""),
        "deckName": deck_name,
        "opponentDeck": opponent_deck,
        "playerDeckKey": normalize_deck_key(deck_name),
        "opponentDeckKey": normalize_deck_key(opponent_deck),
        "isOnlineTourney": body.is_online_tourney,
        "limitlessId": body.limitless_id or None,
        "tourneyName": body.tourney_name or None,
        "tournamentId": derive_tournament_id(body.limitless_id, body.tourney_name, date),
        "result": body.result or None,
        "round": body.round or None,
        "placement": body.placement or None,
        "rawLog": body.raw_log or None,
        "lang": body.lang or DEFAULT_EVENT_LANG,
        "pokemons": (body.pokemons or [])[:MAX_EVENT_POKEMONS],
    }
    if body.stats is not None:
        event["stats"] = body.stats
    if body.format:
        event["format"] = body.format
    if body.rounds_count is not None:
        event["roundsCount"] = body.rounds_count

    return event


def build_event_update(body: PhysicalEventUpdateBody) -> Document:
    """Translate the submitted fields into the stored representation of an event."""
    submitted = body.model_dump(by_alias=True, exclude_unset=True)
    update: Document = {}

    if "deckName" in submitted:
        update["deckName"] = normalize_name(submitted["deckName"])
        update["playerDeckKey"] = normalize_deck_key(update["deckName"])
    if "opponentDeck" in submitted:
        update["opponentDeck"] = normalize_name(submitted["opponentDeck"])
        update["opponentDeckKey"] = normalize_deck_key(update["opponentDeck"])
    for field in ("you", "opponent"):
        if field in submitted:
            update[field] = normalize_name(submitted[field])
    for field in ("round", "placement", "result"):
        if field in submitted:
            update[field] = submitted[field]
    if "pokemons" in submitted:
        update["pokemons"] = (submitted["pokemons"] or [])[:MAX_EVENT_POKEMONS]

    return update


@router.post(
    "/physical/events",
    response_model=EventCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_physical_event(
    body: PhysicalEventCreateBody,
    store: DocumentStore = Depends(get_document_store),
) -> EventCreatedResponse:
    event = build_new_event(body, now_millis())
    await store.merge_write(Collection.PHYSICAL_EVENTS, event["eventId"], event)
    await recompute_all_for_event(store, None, event)
    return EventCreatedResponse(data=EventCreatedView(event_id=event["eventId"]))


@router.get("/physical/events/{event_id}", response_model=PhysicalEventResponse)
async def get_physical_event(
    event: Document = Depends(event_dependency),
) -> PhysicalEventResponse:
    return PhysicalEventResponse(data=PhysicalEvent.model_validate(event))


@router.patch("/physical/events/{event_id}", response_model=SuccessResponse)
async def patch_physical_event(
    event_id: EventId,
    body: PhysicalEventUpdateBody,
    event: Document = Depends(event_dependency),
    store: DocumentStore = Depends(get_document_store),
) -> SuccessResponse:
    update = build_event_update(body)
    await store.merge_write(Collection.PHYSICAL_EVENTS, event_id, update)
    await recompute_all_for_event(store, event, {**event, **update})
    return SuccessResponse()


@router.delete("/physical/events/{event_id}", response_model=SuccessResponse)
async def delete_physical_event(
    event_id: EventId,
    event: Document = Depends(event_dependency),
    store: DocumentStore = Depends(get_document_store),
) -> SuccessResponse:
    await store.delete_document(Collection.PHYSICAL_EVENTS, event_id)
    await recompute_all_for_event(store, event, None)
    return SuccessResponse()


@router.get("/physical/days/{date}", response_model=DayDetailsResponse)
async def get_physical_day(
    date: DateKey,
    store: DocumentStore = Depends(get_document_store),
) -> DayDetailsResponse:
    events = await list_day_events(store, date)
    counts = fold_counts(event.to_document() for event in events)
    return DayDetailsResponse(
        data=DayDetailsView(
            date=date,
            summary=DaySummary(counts=counts, wr=win_rate_percent(counts)),
            events=events,
        )
    )


@router.get("/physical/decks", response_model=DeckAggregatesResponse)
async def get_physical_decks(
    deck: str | None = None,
    store: DocumentStore = Depends(get_document_store),
) -> DeckAggregatesResponse:
    return DeckAggregatesResponse(data=await list_deck_aggregates(store, deck))


@router.get("/physical/tournaments", response_model=TournamentAggregatesResponse)
async def get_physical_tournaments(
    query: str | None = None,
    store: DocumentStore = Depends(get_document_store),
) -> TournamentAggregatesResponse:
    return TournamentAggregatesResponse(data=await list_tournament_aggregates(store, query))


@router.get("/physical/tournaments/{tournament_id}", response_model=TournamentDetailsResponse)
async def get_physical_tournament(
    tournament_id: TournamentId,
    store: DocumentStore = Depends(get_document_store),
) -> TournamentDetailsResponse:
    return TournamentDetailsResponse(
        data=TournamentDetailsView(
            tournament=await get_tournament_aggregate(store, tournament_id),
            rounds=await list_tournament_rounds(store, tournament_id),
        )
    )


@router.get("/physical/opponents", response_model=OpponentAggregatesResponse)
async def get_physical_opponents(
    store: DocumentStore = Depends(get_document_store),
) -> OpponentAggregatesResponse:
    return OpponentAggregatesResponse(data=await list_opponent_aggregates(store))


@router.post("/physical/recompute", response_model=RecomputeResponse)
async def post_recompute(
    body: RecomputeBody,
    store: DocumentStore = Depends(get_document_store),
) -> RecomputeResponse:
    started_at = time.monotonic()
    # Blank keys are skipped by the recompute functions themselves.
    day = await recompute_day(store, body.date)
    deck = await recompute_deck(store, body.deck_key)
    tournament = await recompute_tournament(store, body.tournament_id)
    opponent = await recompute_opponent(store, body.opponent)

    return RecomputeResponse(
        data=RecomputeView(
            recomputed_at=datetime_utc.now().isoformat(),
            duration_ms=int((time.monotonic() - started_at) * 1000),
            day=day,
            deck=deck,
            tournament=tournament,
            opponent=opponent,
        )
    )


@router.get("/physical/tournament_types", response_model=TournamentTypeResponse)
async def get_tournament_type(value: str | None = None) -> TournamentTypeResponse:
    return TournamentTypeResponse(
        data=TournamentTypeView(
            value=value, tournament_type=normalize_tournament_type_filter(value)
        )
    )
