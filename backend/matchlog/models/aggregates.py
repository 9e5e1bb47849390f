from pydantic import Field

from matchlog.models.counts import OutcomeCounts
from matchlog.models.shared import DocumentModel
from matchlog.utils.id_types import DateKey, DeckKey, TournamentId

WinRate = int | float


class DayAggregate(DocumentModel):
    date: DateKey
    counts: OutcomeCounts = Field(default_factory=OutcomeCounts)
    wr: WinRate = 0


class DeckAggregate(DocumentModel):
    deck_key: DeckKey
    games: int = Field(default=0, ge=0)
    counts: OutcomeCounts = Field(default_factory=OutcomeCounts)
    wr: WinRate = 0
    pokemons: list[str] = Field(default_factory=list)


class TournamentDeckBreakdown(DocumentModel):
    deck_key: DeckKey
    counts: OutcomeCounts
    games: int = Field(ge=0)
    wr: WinRate


class TournamentMeta(DocumentModel):
    """Descriptive fields taken from the reference event of a tournament."""

    name: str | None = None
    date_iso: str | None = Field(default=None, alias="dateISO")
    format: str | None = None
    deck: DeckKey | None = None
    deck_name: str | None = None
    rounds_count: int | float | None = None


class TournamentAggregate(TournamentMeta):
    tournament_id: TournamentId
    counts: OutcomeCounts = Field(default_factory=OutcomeCounts)
    wr: WinRate = 0
    decks: list[TournamentDeckBreakdown] = Field(default_factory=list)


class TournamentMirror(DocumentModel):
    tournament_id: TournamentId
    source: str


class OpponentAggregate(DocumentModel):
    opponent: str
    games: int = Field(default=0, ge=0)
    counts: OutcomeCounts = Field(default_factory=OutcomeCounts)
    wr: WinRate = 0
    top_deck_key: DeckKey | None = None
    top_deck_name: str | None = None


class RecomputeBody(DocumentModel):
    date: DateKey | None = None
    deck_key: DeckKey | None = None
    tournament_id: TournamentId | None = None
    opponent: str | None = None
