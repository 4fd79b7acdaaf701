"""Heuristic classification of a chat question into a QueryIntent.

Rules are checked in priority order (profit superlatives, then losses, then
"first trade" language) and fall back to the newest trades without filters.
Ambiguous questions are not second-guessed.
"""

import re
from typing import Iterable, Optional, Pattern, Sequence

from .constants import KNOWN_STRATEGIES, KNOWN_SYMBOLS
from .models import OrderBy, QueryIntent

_HIGHEST_PNL_PATTERNS = (
    r"\bbest\b",
    r"\btop\b",
    r"\bmost profitable\b",
    r"\bprofitable\b",
    r"\bhighest\b",
    r"\b(?:biggest|largest) (?:win|gain|winner)s?\b",
    r"\bmost successful\b",
)

_LOWEST_PNL_PATTERNS = (
    r"\bworst\b",
    r"\blos(?:s|ses|ing|er|ers)\b",
    r"\bunprofitable\b",
    r"\bbad trades?\b",
    r"\bnegative\b",
    r"\blowest\b",
)

_OLDEST_PATTERNS = (
    r"\bfirst\b",
    r"\boldest\b",
    r"\bearliest\b",
    r"\bwhen did i start\b",
    r"\bstarted trading\b",
    r"\bbeg(?:an|in|inning)\b",
)

_COUNT_PATTERNS = (
    r"\b(?:top|best|worst|bottom|first|oldest|last|latest)\s+(\d{1,3})\b",
    r"\b(\d{1,3})\s+(?:best|worst|top|most|losing|biggest|largest|highest|lowest|first|oldest)\b",
)

_CASHTAG = re.compile(r"\$([a-z][a-z0-9&.\-]{0,14})")


def _compile(patterns: Iterable[str]) -> tuple:
    return tuple(re.compile(p) for p in patterns)


def _word_pattern(term: str) -> Pattern:
    return re.compile(r"\b" + re.escape(term) + r"\b")


class QueryIntentExtractor:
    """Turns a free-text question into ordering and filter directives.

    Strategy and symbol vocabularies are configurable; the defaults cover the
    labels most journal users type.
    """

    def __init__(
        self,
        strategies: Sequence[str] = KNOWN_STRATEGIES,
        symbols: Sequence[str] = KNOWN_SYMBOLS,
    ) -> None:
        self._highest = _compile(_HIGHEST_PNL_PATTERNS)
        self._lowest = _compile(_LOWEST_PNL_PATTERNS)
        self._oldest = _compile(_OLDEST_PATTERNS)
        self._counts = _compile(_COUNT_PATTERNS)
        self._strategies = [(s.lower(), _word_pattern(s.lower())) for s in strategies]
        self._symbols = [(s.lower(), _word_pattern(s.lower())) for s in symbols]

    def extract(self, message: Optional[str]) -> QueryIntent:
        text = (message or "").lower()
        if not text.strip():
            return QueryIntent()

        return QueryIntent(
            order_by=self._order_by(text),
            filter_strategy=self._match_strategy(text),
            filter_symbol=self._match_symbol(text),
            requested_count=self._requested_count(text),
        )

    def _order_by(self, text: str) -> OrderBy:
        if any(p.search(text) for p in self._highest):
            return OrderBy.HIGHEST_PNL
        if any(p.search(text) for p in self._lowest):
            return OrderBy.LOWEST_PNL
        if any(p.search(text) for p in self._oldest):
            return OrderBy.OLDEST
        return OrderBy.NEWEST

    def _match_strategy(self, text: str) -> Optional[str]:
        for name, pattern in self._strategies:
            if pattern.search(text):
                return name
        return None

    def _match_symbol(self, text: str) -> Optional[str]:
        for name, pattern in self._symbols:
            if pattern.search(text):
                return name.upper()
        cashtag = _CASHTAG.search(text)
        if cashtag:
            return cashtag.group(1).upper()
        return None

    def _requested_count(self, text: str) -> Optional[int]:
        for pattern in self._counts:
            match = pattern.search(text)
            if match:
                value = int(match.group(1))
                return value if value > 0 else None
        return None


_default_extractor = QueryIntentExtractor()


def extract_query_intent(message: Optional[str]) -> QueryIntent:
    """Classify ``message`` with the default vocabularies."""
    return _default_extractor.extract(message)
