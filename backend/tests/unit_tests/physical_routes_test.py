import json

import pytest
from starlette.exceptions import HTTPException
from starlette.requests import Request

from matchlog.app import store_error_handler
from matchlog.models.aggregates import RecomputeBody
from matchlog.models.collections import Collection
from matchlog.models.event import PhysicalEventCreateBody, PhysicalEventUpdateBody
from matchlog.routes import physical as physical_routes
from matchlog.routes.util import event_dependency
from matchlog.store.exceptions import StoreQueryFailure
from matchlog.store.memory import InMemoryDocumentStore
from matchlog.utils.id_types import DateKey, DeckKey, EventId, TournamentId
from tests.unit_tests.shared import seed_events


def test_build_event_update_normalizes_submitted_fields() -> None:
    body = PhysicalEventUpdateBody.model_validate(
        {"deckName": "  Lost   Box ", "opponent": " Ash  Ketchum", "pokemons": ["a", "b", "c"]}
    )

    assert physical_routes.build_event_update(body) == {
        "deckName": "Lost Box",
        "playerDeckKey": "lost-box",
        "opponent": "Ash Ketchum",
        "pokemons": ["a", "b"],
    }


def test_build_event_update_ignores_unset_fields() -> None:
    assert physical_routes.build_event_update(PhysicalEventUpdateBody()) == {}
    assert physical_routes.build_event_update(
        PhysicalEventUpdateBody.model_validate({"result": None, "round": 3})
    ) == {"result": None, "round": 3}


@pytest.mark.asyncio
async def test_event_dependency_raises_404_for_unknown_event(
    store: InMemoryDocumentStore,
) -> None:
    with pytest.raises(HTTPException) as exc_info:
        await event_dependency(EventId("missing"), store)

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_patch_event_recomputes_old_and_new_deck(store: InMemoryDocumentStore) -> None:
    seed_events(
        store,
        {
            "eventId": "event-1",
            "date": "2024-05-01",
            "deckName": "Charizard",
            "playerDeckKey": "charizard",
            "tournamentId": "tour-1",
            "result": "W",
        },
    )
    event = await event_dependency(EventId("event-1"), store)

    response = await physical_routes.patch_physical_event(
        EventId("event-1"),
        PhysicalEventUpdateBody(deck_name="Gardevoir ex"),
        event,
        store,
    )

    assert response.success is True
    stored = await store.get_document(Collection.PHYSICAL_EVENTS, "event-1")
    assert stored is not None
    assert stored["playerDeckKey"] == "gardevoir-ex"
    assert stored["result"] == "W"

    old_deck = await store.get_document(Collection.PHYSICAL_DECKS_AGG, "charizard")
    new_deck = await store.get_document(Collection.PHYSICAL_DECKS_AGG, "gardevoir-ex")
    assert old_deck is not None and old_deck["games"] == 0
    assert new_deck is not None and new_deck["games"] == 1 and new_deck["wr"] == 100

    tournament = await store.get_document(Collection.PHYSICAL_TOURNAMENTS_AGG, "tour-1")
    assert tournament is not None
    assert [deck["deckKey"] for deck in tournament["decks"]] == ["gardevoir-ex"]


@pytest.mark.asyncio
async def test_delete_event_resets_aggregates(store: InMemoryDocumentStore) -> None:
    seed_events(
        store,
        {"eventId": "event-1", "date": "2024-05-01", "playerDeckKey": "lugia", "result": "L"},
    )
    event = await event_dependency(EventId("event-1"), store)

    await physical_routes.delete_physical_event(EventId("event-1"), event, store)

    assert await store.get_document(Collection.PHYSICAL_EVENTS, "event-1") is None
    assert await store.get_document(Collection.PHYSICAL_DAYS, "2024-05-01") == {
        "date": "2024-05-01",
        "counts": {"W": 0, "L": 0, "T": 0},
        "wr": 0,
    }


@pytest.mark.asyncio
async def test_post_recompute_returns_requested_aggregates(store: InMemoryDocumentStore) -> None:
    seed_events(
        store,
        {"date": "2024-05-01", "playerDeckKey": "deck-1", "stats": {"counts": {"W": 2, "L": 1}}},
    )

    response = await physical_routes.post_recompute(
        RecomputeBody(date=DateKey("2024-05-01"), deck_key=DeckKey("deck-1")), store
    )

    assert response.data.success is True
    assert response.data.recomputed_at != ""
    assert response.data.day is not None and response.data.day.wr == 66.7
    assert response.data.deck is not None and response.data.deck.games == 1
    assert response.data.tournament is None


@pytest.mark.asyncio
async def test_post_recompute_propagates_store_failures(
    store: InMemoryDocumentStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def failing_query(*_: object) -> list[dict]:
        raise StoreQueryFailure("store is down")

    monkeypatch.setattr(store, "query_events_by_field", failing_query)

    with pytest.raises(StoreQueryFailure):
        await physical_routes.post_recompute(
            RecomputeBody(tournament_id=TournamentId("tour-1")), store
        )
    assert await store.get_document(Collection.TOURNAMENTS, "tour-1") is None


@pytest.mark.asyncio
async def test_get_tournament_type() -> None:
    response = await physical_routes.get_tournament_type("Campeonato Mundial")
    assert response.data.tournament_type == "worlds"

    response = await physical_routes.get_tournament_type(None)
    assert response.data.tournament_type is None


@pytest.mark.asyncio
async def test_store_error_handler_maps_to_500() -> None:
    request = Request(
        {
            "type": "http",
            "method": "PATCH",
            "path": "/physical/events/event-1",
            "headers": [],
            "query_string": b"",
        }
    )

    response = await store_error_handler(request, StoreQueryFailure("store is down"))

    assert response.status_code == 500
    assert json.loads(response.body) == {"detail": "Could not reach the match store"}


def test_derive_tournament_id() -> None:
    assert physical_routes.derive_tournament_id("1234", "Liga", DateKey("2024-05-01")) == (
        "limitless:1234"
    )
    assert physical_routes.derive_tournament_id(None, "Liga  Local Maio", DateKey("2024-05-01")) == (
        "manual:liga-local-maio:2024-05-01"
    )
    assert physical_routes.derive_tournament_id(None, None, DateKey("2024-05-01")) is None


def test_build_new_event_derives_keys_and_local_date() -> None:
    body = PhysicalEventCreateBody.model_validate(
        {
            "deckName": " Charizard   ex ",
            "opponent": " Ash ",
            "opponentDeck": "Lugia VSTAR",
            "tourneyName": "Liga Local",
            "result": "W",
            "pokemons": ["charizard-ex", "pidgeot-ex", "rotom-v"],
        }
    )

    # 2024-05-01T02:00:00Z is still April 30th in America/Sao_Paulo.
    event = physical_routes.build_new_event(body, now_ms=1714528800000)

    assert len(event["eventId"]) == 32
    assert {field: value for field, value in event.items() if field != "eventId"} == {
        "source": "physical",
        "createdAt": 1714528800000,
        "date": "2024-04-30",
        "you": "you",
        "opponent": "Ash",
        "deckName": "Charizard ex",
        "opponentDeck": "Lugia VSTAR",
        "playerDeckKey": "charizard-ex",
        "opponentDeckKey": "lugia-vstar",
        "isOnlineTourney": False,
        "limitlessId": None,
        "tourneyName": "Liga Local",
        "tournamentId": "manual:liga-local:2024-04-30",
        "result": "W",
        "round": None,
        "placement": None,
        "rawLog": None,
        "lang": "pt",
        "pokemons": ["charizard-ex", "pidgeot-ex"],
    }


@pytest.mark.asyncio
async def test_create_event_stores_event_and_recomputes(store: InMemoryDocumentStore) -> None:
    body = PhysicalEventCreateBody.model_validate(
        {
            "eventId": "event-9",
            "createdAt": 1714575600000,
            "deckName": "Gardevoir ex",
            "opponent": "Misty",
            "opponentDeck": "Starmie",
            "limitlessId": "4321",
            "stats": {"counts": {"W": 2, "L": 1}},
        }
    )

    response = await physical_routes.create_physical_event(body, store)

    assert response.data.event_id == "event-9"
    stored = await store.get_document(Collection.PHYSICAL_EVENTS, "event-9")
    assert stored is not None
    assert stored["date"] == "2024-05-01"
    assert stored["tournamentId"] == "limitless:4321"

    day = await store.get_document(Collection.PHYSICAL_DAYS, "2024-05-01")
    deck = await store.get_document(Collection.PHYSICAL_DECKS_AGG, "gardevoir-ex")
    tournament = await store.get_document(Collection.PHYSICAL_TOURNAMENTS_AGG, "limitless:4321")
    opponent = await store.get_document(Collection.PHYSICAL_OPPONENTS_AGG, "Misty")
    assert day is not None and day["wr"] == 66.7
    assert deck is not None and deck["games"] == 1
    assert tournament is not None and tournament["deckName"] == "Gardevoir ex"
    assert opponent is not None and opponent["topDeckKey"] == "starmie"
    assert await store.get_document(Collection.TOURNAMENTS, "limitless:4321") == {
        "tournamentId": "limitless:4321",
        "source": "physical",
    }


@pytest.mark.asyncio
async def test_post_recompute_skips_blank_keys(store: InMemoryDocumentStore) -> None:
    response = await physical_routes.post_recompute(
        RecomputeBody(date=DateKey(""), deck_key=DeckKey(""), tournament_id=TournamentId("")),
        store,
    )

    assert response.data.day is None
    assert response.data.deck is None
    assert response.data.tournament is None
    assert store.collections[Collection.PHYSICAL_DAYS] == {}
    assert store.collections[Collection.PHYSICAL_DECKS_AGG] == {}
    assert store.collections[Collection.TOURNAMENTS] == {}


@pytest.mark.asyncio
async def test_get_day_lists_newest_events_with_summary(store: InMemoryDocumentStore) -> None:
    seed_events(
        store,
        {"eventId": "early", "date": "2024-05-01", "createdAt": 1714560000000, "result": "W"},
        {"eventId": "late", "date": "2024-05-01", "createdAt": 1714570000000, "result": "L"},
        {"eventId": "other", "date": "2024-05-02", "createdAt": 1714650000000, "result": "W"},
    )

    response = await physical_routes.get_physical_day(DateKey("2024-05-01"), store)

    assert [event.event_id for event in response.data.events] == ["late", "early"]
    assert response.data.summary.counts.model_dump() == {"W": 1, "L": 1, "T": 0}
    assert response.data.summary.wr == 50


@pytest.mark.asyncio
async def test_get_decks_orders_by_win_rate(store: InMemoryDocumentStore) -> None:
    seed_events(
        store,
        {"playerDeckKey": "lugia", "result": "L"},
        {"playerDeckKey": "charizard", "result": "W"},
        {"playerDeckKey": "gardevoir", "result": "W"},
        {"playerDeckKey": "gardevoir", "result": "L"},
    )
    for deck_key in ("lugia", "charizard", "gardevoir"):
        await physical_routes.recompute_deck(store, DeckKey(deck_key))

    listed = await physical_routes.get_physical_decks(None, store)
    single = await physical_routes.get_physical_decks("  Gardevoir ", store)
    missing = await physical_routes.get_physical_decks("miraidon", store)

    assert [deck.deck_key for deck in listed.data] == ["charizard", "gardevoir", "lugia"]
    assert [deck.deck_key for deck in single.data] == ["gardevoir"]
    assert single.data[0].games == 2
    assert missing.data == []


@pytest.mark.asyncio
async def test_get_tournaments_filters_and_orders_by_date(store: InMemoryDocumentStore) -> None:
    await store.merge_write(
        Collection.PHYSICAL_TOURNAMENTS_AGG,
        "limitless:1",
        {"tournamentId": "limitless:1", "name": "Regional Curitiba", "dateISO": "2024-03-10"},
    )
    await store.merge_write(
        Collection.PHYSICAL_TOURNAMENTS_AGG,
        "limitless:2",
        {"tournamentId": "limitless:2", "name": "Liga Local", "dateISO": "2024-05-04"},
    )
    await store.merge_write(
        Collection.PHYSICAL_TOURNAMENTS_AGG,
        "manual:cup:2024-04-01",
        {"tournamentId": "manual:cup:2024-04-01", "name": None, "dateISO": "2024-04-01"},
    )

    everything = await physical_routes.get_physical_tournaments(None, store)
    by_name = await physical_routes.get_physical_tournaments("curitiba", store)
    by_id = await physical_routes.get_physical_tournaments("MANUAL:", store)

    assert [t.tournament_id for t in everything.data] == [
        "limitless:2",
        "manual:cup:2024-04-01",
        "limitless:1",
    ]
    assert [t.tournament_id for t in by_name.data] == ["limitless:1"]
    assert [t.tournament_id for t in by_id.data] == ["manual:cup:2024-04-01"]


@pytest.mark.asyncio
async def test_get_tournament_returns_aggregate_and_rounds(store: InMemoryDocumentStore) -> None:
    seed_events(
        store,
        {"eventId": "r2", "tournamentId": "t-1", "round": 2, "result": "L"},
        {"eventId": "unnumbered", "tournamentId": "t-1", "result": "W"},
        {"eventId": "r1", "tournamentId": "t-1", "round": "1", "result": "W"},
    )
    await physical_routes.recompute_tournament(store, TournamentId("t-1"))

    response = await physical_routes.get_physical_tournament(TournamentId("t-1"), store)
    unknown = await physical_routes.get_physical_tournament(TournamentId("t-unknown"), store)

    assert response.data.tournament.counts.model_dump() == {"W": 2, "L": 1, "T": 0}
    assert [event.event_id for event in response.data.rounds] == ["r1", "r2", "unnumbered"]
    assert unknown.data.tournament.tournament_id == "t-unknown"
    assert unknown.data.tournament.decks == []
    assert unknown.data.rounds == []


@pytest.mark.asyncio
async def test_get_opponents_sorted_by_name(store: InMemoryDocumentStore) -> None:
    seed_events(
        store,
        {"opponent": "misty", "result": "W"},
        {"opponent": "Ash", "result": "L"},
    )
    for opponent in ("misty", "Ash"):
        await physical_routes.recompute_opponent(store, opponent)

    response = await physical_routes.get_physical_opponents(store)

    assert [opponent.opponent for opponent in response.data] == ["Ash", "misty"]
    assert [opponent.wr for opponent in response.data] == [0, 100]
