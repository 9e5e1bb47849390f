from enum import Enum


class Collection(str, Enum):
    PHYSICAL_EVENTS = "physicalEvents"
    PHYSICAL_DAYS = "physicalDays"
    PHYSICAL_DECKS_AGG = "physicalDecksAgg"
    PHYSICAL_TOURNAMENTS_AGG = "physicalTournamentsAgg"
    PHYSICAL_OPPONENTS_AGG = "physicalOpponentsAgg"
    TOURNAMENTS = "tournaments"

    def __str__(self) -> str:
        return self.value
