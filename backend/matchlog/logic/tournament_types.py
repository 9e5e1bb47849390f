import unicodedata
from typing import NamedTuple


class TournamentTypeOption(NamedTuple):
    value: str
    keywords: tuple[str, ...]


# Order matters: the first option with a matching keyword wins.
TOURNAMENT_TYPE_FILTER_OPTIONS: tuple[TournamentTypeOption, ...] = (
    TournamentTypeOption(
        value="regional",
        keywords=("regional", "regional championship", "regional championships"),
    ),
    TournamentTypeOption(
        value="special",
        keywords=("special", "special event", "special events"),
    ),
    TournamentTypeOption(
        value="international",
        keywords=(
            "international",
            "international championship",
            "international championships",
            "internacional",
            "internacional championship",
            "internacional championships",
        ),
    ),
    TournamentTypeOption(
        value="worlds",
        keywords=(
            "worlds",
            "world championship",
            "world championships",
            "mundial",
            "campeonato mundial",
        ),
    ),
)


def normalize_ascii(value: object) -> str:
    if not isinstance(value, str):
        return ""
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return stripped.lower().strip()


def normalize_tournament_type_filter(value: object) -> str | None:
    ascii_value = normalize_ascii(value)
    if ascii_value == "":
        return None

    for option in TOURNAMENT_TYPE_FILTER_OPTIONS:
        if any(
            ascii_value == keyword or keyword in ascii_value for keyword in option.keywords
        ):
            return option.value

    return None
