from typing import NewType

EventId = NewType("EventId", str)
DateKey = NewType("DateKey", str)
DeckKey = NewType("DeckKey", str)
TournamentId = NewType("TournamentId", str)
