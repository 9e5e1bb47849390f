from typing import Generic, TypeVar

from pydantic import BaseModel

from matchlog.models.aggregates import (
    DayAggregate,
    DeckAggregate,
    OpponentAggregate,
    TournamentAggregate,
    WinRate,
)
from matchlog.models.counts import OutcomeCounts
from matchlog.models.event import PhysicalEvent
from matchlog.models.shared import DocumentModel
from matchlog.utils.id_types import DateKey, EventId


class SuccessResponse(BaseModel):
    success: bool = True


DataT = TypeVar("DataT")


class DataResponse(BaseModel, Generic[DataT]):
    data: DataT


class PhysicalEventResponse(DataResponse[PhysicalEvent]):
    pass


class EventCreatedView(DocumentModel):
    event_id: EventId


class EventCreatedResponse(DataResponse[EventCreatedView]):
    pass


class DaySummary(DocumentModel):
    counts: OutcomeCounts
    wr: WinRate


class DayDetailsView(DocumentModel):
    date: DateKey
    summary: DaySummary
    events: list[PhysicalEvent]


class DayDetailsResponse(DataResponse[DayDetailsView]):
    pass


class DeckAggregatesResponse(DataResponse[list[DeckAggregate]]):
    pass


class TournamentAggregatesResponse(DataResponse[list[TournamentAggregate]]):
    pass


class TournamentDetailsView(DocumentModel):
    tournament: TournamentAggregate
    rounds: list[PhysicalEvent]


class TournamentDetailsResponse(DataResponse[TournamentDetailsView]):
    pass


class OpponentAggregatesResponse(DataResponse[list[OpponentAggregate]]):
    pass


class RecomputeView(DocumentModel):
    success: bool = True
    recomputed_at: str
    duration_ms: int
    day: DayAggregate | None = None
    deck: DeckAggregate | None = None
    tournament: TournamentAggregate | None = None
    opponent: OpponentAggregate | None = None


class RecomputeResponse(DataResponse[RecomputeView]):
    pass


class TournamentTypeView(DocumentModel):
    value: str | None
    tournament_type: str | None


class TournamentTypeResponse(DataResponse[TournamentTypeView]):
    pass
