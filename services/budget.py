# services/budget.py
from typing import NamedTuple


class Truncated(NamedTuple):
    text: str
    was_truncated: bool


def truncate(text: str, max_chars: int) -> Truncated:
    """Cut `text` to at most `max_chars`, backing up to the last space so no word is split."""
    if len(text) <= max_chars:
        return Truncated(text, False)
    cut = text[:max_chars]
    last_space = cut.rfind(" ")
    if last_space != -1:
        cut = cut[:last_space]
    return Truncated(cut, True)
