import re

_WHITESPACE = re.compile(r"\s+")
_NON_KEY_CHARS = re.compile(r"[^a-z0-9]+")


def normalize_name(value: object) -> str:
    if not isinstance(value, str):
        return ""
    return _WHITESPACE.sub(" ", value).strip()


def normalize_deck_key(deck_name: object) -> str:
    return _NON_KEY_CHARS.sub("-", normalize_name(deck_name).lower()).strip("-")
