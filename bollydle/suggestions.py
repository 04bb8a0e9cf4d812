"""Autocomplete candidates for the guess input."""

from collections.abc import Iterable

from .config import SUGGESTION_LIMIT
from .models import Track


def suggestions(query: str, catalog: Iterable[Track], limit: int = SUGGESTION_LIMIT) -> list[Track]:
    """Return catalog tracks whose title contains the query, in catalog order."""
    # A blank query shows no dropdown at all.
    if not query.strip() or limit <= 0:
        return []

    needle = query.casefold()
    matches: list[Track] = []
    for track in catalog:
        if needle in track.title.casefold():
            matches.append(track)
            if len(matches) >= limit:
                break
    return matches
