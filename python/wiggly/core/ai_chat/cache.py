"""Context cache with an advisory load flag.

A ``ContextCache`` is an explicitly owned object: each chat service (and each
test) holds its own instance. Writes swap a single reference under a lock so
readers see either the previous snapshot or the new one, never a partial one.
The load flag only advertises that a build is running; it is not a lock, and
two racing builds simply end with the last write winning.
"""

from __future__ import annotations

import re
import threading
from typing import Callable, List, Optional

from loguru import logger

from wiggly.utils.ts import get_current_timestamp_ms

from .constants import (
    CACHE_BYPASS_KEYWORDS,
    DEFAULT_FRESHNESS_WINDOW_MS,
    MUST_REFRESH_KEYWORDS,
)
from .intent import QueryIntentExtractor
from .models import ContextSnapshot

CacheListener = Callable[[Optional[int]], None]


def _keyword_regex(keywords, suffix: str = "") -> re.Pattern:
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(r"\b(?:" + alternatives + r")" + suffix + r"\b")


# "profits", "earned", "earnings" and "totals" count as the same topic
_MUST_REFRESH = _keyword_regex(MUST_REFRESH_KEYWORDS, r"(?:s|ed|ing|ings|able)?")
_BYPASS = _keyword_regex(CACHE_BYPASS_KEYWORDS)


def is_must_refresh_topic(message: Optional[str]) -> bool:
    """Financial totals and first/oldest questions must never be served stale."""
    return bool(_MUST_REFRESH.search((message or "").lower()))


def is_cache_bypass_query(message: Optional[str]) -> bool:
    """Questions about the current state of the journal skip the cache."""
    return bool(_BYPASS.search((message or "").lower()))


class ContextCache:
    """Holds the most recently assembled context snapshot."""

    def __init__(
        self,
        freshness_window_ms: int = DEFAULT_FRESHNESS_WINDOW_MS,
        *,
        clock: Callable[[], int] = get_current_timestamp_ms,
        extractor: Optional[QueryIntentExtractor] = None,
    ) -> None:
        self.freshness_window_ms = freshness_window_ms
        self._clock = clock
        self._extractor = extractor or QueryIntentExtractor()
        self._snapshot: Optional[ContextSnapshot] = None
        self._loading = False
        self._lock = threading.Lock()
        self._listeners: List[CacheListener] = []

    # ------------------------------------------------------------------
    # Reads

    def read(self) -> Optional[ContextSnapshot]:
        with self._lock:
            return self._snapshot

    def age_ms(self) -> Optional[int]:
        snapshot = self.read()
        if snapshot is None:
            return None
        return max(0, self._clock() - snapshot.built_at)

    def is_valid(self, message: Optional[str]) -> bool:
        snapshot = self.read()
        if snapshot is None:
            return False
        if self._clock() - snapshot.built_at >= self.freshness_window_ms:
            logger.debug("AI context cache expired (built_at={})", snapshot.built_at)
            return False
        if is_must_refresh_topic(message):
            logger.debug("Must-refresh topic detected - bypassing AI context cache")
            return False
        if is_cache_bypass_query(message):
            logger.debug("Cache bypass keyword detected - bypassing AI context cache")
            return False
        if self._extractor.extract(message) != snapshot.intent_used_to_build:
            logger.debug("Query intent changed - cached AI context no longer applies")
            return False
        return True

    # ------------------------------------------------------------------
    # Writes

    def write(self, snapshot: ContextSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot
            self._loading = False
        self._notify(snapshot.built_at)

    def invalidate(self) -> None:
        with self._lock:
            had_snapshot = self._snapshot is not None
            self._snapshot = None
        if had_snapshot:
            logger.info("AI context cache invalidated - forcing fresh data")
        self._notify(None)

    # ------------------------------------------------------------------
    # Load flag

    @property
    def is_loading(self) -> bool:
        with self._lock:
            return self._loading

    def set_loading(self, loading: bool) -> None:
        with self._lock:
            self._loading = loading

    # ------------------------------------------------------------------
    # Change notifications

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, built_at: Optional[int]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(built_at)
            except Exception as exc:
                logger.warning("AI context cache listener failed: {}", exc)
