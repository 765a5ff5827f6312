"""Category resolution from Gamma tag labels and question/title text."""

from __future__ import annotations

import re
from collections.abc import Iterable

from polyhub.models.category import (
    BUSINESS,
    CRYPTO,
    ENTERTAINMENT,
    POLITICS,
    SPORTS,
    TECHNOLOGY,
    WORLD,
    Category,
)

# (category, tag labels, title pattern) in priority order
_RULES: tuple[tuple[Category, frozenset[str], re.Pattern[str]], ...] = (
    (
        POLITICS,
        frozenset({"politics", "election", "elections"}),
        re.compile(r"\b(president(ial)?|elections?|primary|primaries|senate|votes?|voting)\b"),
    ),
    (
        SPORTS,
        frozenset({"sports", "nfl", "nba"}),
        re.compile(r"\b(sports?|super bowl|nfl|nba|mlb|nhl)\b"),
    ),
    (
        CRYPTO,
        frozenset({"crypto", "bitcoin", "ethereum"}),
        re.compile(r"\b(bitcoin|crypto(currency)?|eth|ethereum|btc)\b"),
    ),
    (
        BUSINESS,
        frozenset({"business", "economy"}),
        re.compile(r"\b(fed|gdp|inflation|stocks?|nasdaq|recession)\b"),
    ),
    (
        TECHNOLOGY,
        frozenset({"technology", "tech"}),
        re.compile(r"\b(ai|tech|tiktok|google|microsoft|openai)\b"),
    ),
    (
        ENTERTAINMENT,
        frozenset({"entertainment", "pop culture", "movies", "music", "celebrities"}),
        re.compile(r"\b(oscars?|grammys?|emmys?|box office|movies?|album|netflix)\b"),
    ),
)


def resolve_category(labels: Iterable[str], title: str) -> Category:
    """Pick the dashboard category for (labels, title).

    Labels are checked first for every category in priority order, then the
    title text, then WORLD. Pure function of its inputs.
    """
    folded = {label.strip().casefold() for label in labels if label}
    for category, tag_labels, _ in _RULES:
        if folded & tag_labels:
            return category
    text = (title or "").casefold()
    for category, _, pattern in _RULES:
        if pattern.search(text):
            return category
    return WORLD
