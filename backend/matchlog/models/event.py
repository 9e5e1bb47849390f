from typing import Any

from pydantic import ConfigDict

from matchlog.models.shared import DocumentModel
from matchlog.utils.id_types import DateKey, DeckKey, EventId, TournamentId


class PhysicalEvent(DocumentModel):
    model_config = ConfigDict(extra="allow")

    event_id: EventId | None = None
    date: DateKey | None = None
    player_deck_key: DeckKey | None = None
    opponent_deck_key: DeckKey | None = None
    tournament_id: TournamentId | None = None
    deck_name: str | None = None
    opponent_deck: str | None = None
    you: str | None = None
    opponent: str | None = None
    result: str | None = None
    pokemons: list[Any] = []


class PhysicalEventUpdateBody(DocumentModel):
    """Mutable fields of a logged event, only fields present in the request are applied."""

    deck_name: str | None = None
    opponent_deck: str | None = None
    you: str | None = None
    opponent: str | None = None
    round: int | str | None = None
    placement: int | str | None = None
    pokemons: list[Any] | None = None
    result: str | None = None


class PhysicalEventCreateBody(DocumentModel):
    event_id: EventId | None = None
    created_at: int | float | None = None
    you: str | None = None
    opponent: str | None = None
    deck_name: str | None = None
    opponent_deck: str | None = None
    is_online_tourney: bool = False
    limitless_id: str | None = None
    tourney_name: str | None = None
    format: str | None = None
    rounds_count: int | None = None
    result: str | None = None
    round: int | str | None = None
    placement: int | str | None = None
    stats: dict[str, Any] | None = None
    raw_log: str | None = None
    lang: str | None = None
    pokemons: list[Any] | None = None
