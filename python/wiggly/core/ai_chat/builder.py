from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional

from loguru import logger

from wiggly.utils.ts import get_current_timestamp_ms

from .cache import ContextCache
from .constants import MIN_SAMPLE_LIMIT, NORMAL_SAMPLE_LIMIT, SIMPLIFIED_SAMPLE_LIMIT
from .errors import AIChatError, AIChatErrorType
from .intent import QueryIntentExtractor
from .interfaces import BaseTradeStore
from .models import (
    AIChatConfig,
    ContextSnapshot,
    QueryIntent,
    TradeRecord,
    TradeStats,
    TradeSummary,
)
from .preferences import SimplifiedModePreference
from .prompts import render_context_prompt, render_empty_prompt
from .tokens import estimate_tokens
from .utils import compact_trade, summarize_trade


class ContextBuilder:
    """Assembles the system prompt context for one chat question.

    The flow for a cache miss:
    1. Classify the question into a :class:`QueryIntent`.
    2. Count trades; an empty journal yields a "no data yet" snapshot.
    3. Fetch an intent-ordered slice (10 trades, 5 in simplified mode), the
       first and most recent trades, and aggregates over the whole history.
    4. Render the prompt and check it against the context token ceiling. An
       oversized render switches to simplified mode once, then drops sample
       trades down to a single one rather than failing.
    5. Write the snapshot to the cache.

    Concurrent callers that find a build in progress poll the cache for a
    bounded number of attempts and then build on their own.
    """

    def __init__(
        self,
        store: BaseTradeStore,
        cache: ContextCache,
        preference: Optional[SimplifiedModePreference] = None,
        config: Optional[AIChatConfig] = None,
        *,
        extractor: Optional[QueryIntentExtractor] = None,
        clock: Callable[[], int] = get_current_timestamp_ms,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._cache = cache
        self._preference = preference or SimplifiedModePreference()
        self._config = config or AIChatConfig()
        self._extractor = extractor or QueryIntentExtractor()
        self._clock = clock
        self._sleep = sleep
        self._last_built_at = 0
        self.pinned_total_pnl: Optional[float] = None

    @property
    def cache(self) -> ContextCache:
        return self._cache

    async def build(self, message: str) -> ContextSnapshot:
        if self._cache.is_valid(message):
            cached = self._cache.read()
            if cached is not None:
                logger.info("Using cached AI context data (built_at={})", cached.built_at)
                return cached

        if self._cache.is_loading:
            logger.info("AI context is already being loaded - waiting")
            awaited = await self._wait_for_inflight_build()
            if awaited is not None:
                return awaited
            logger.warning("Gave up waiting for in-flight AI context build; building")

        self._cache.set_loading(True)
        try:
            snapshot = await self._assemble(message)
            self._cache.write(snapshot)
            logger.info(
                "Selected {} trades for AI context out of {} total (simplified={}, tokens={})",
                len(snapshot.sample_records),
                snapshot.total_record_count,
                snapshot.simplified_mode,
                snapshot.estimated_tokens,
            )
            return snapshot
        finally:
            self._cache.set_loading(False)

    def shrink_to_fit(self, snapshot: ContextSnapshot, ceiling: int) -> ContextSnapshot:
        """Re-render ``snapshot`` with fewer sample trades until it fits ``ceiling``.

        No storage access; the smallest render is returned even if it is still
        over the ceiling, flagged with ``budget_exceeded``.
        """
        if snapshot.total_record_count == 0 or snapshot.estimated_tokens <= ceiling:
            return snapshot
        stats = TradeStats(
            total_count=snapshot.total_record_count,
            win_count=snapshot.winning_record_count,
            total_pnl=snapshot.aggregate_pnl,
            screenshot_trade_count=snapshot.screenshot_record_count,
        )
        return self._fit_by_truncation(
            intent=snapshot.intent_used_to_build,
            stats=stats,
            records=list(snapshot.sample_records),
            newest=snapshot.most_recent_record_summary,
            oldest=snapshot.oldest_record_summary,
            simplified=snapshot.simplified_mode,
            ceiling=ceiling,
        )

    # ------------------------------------------------------------------

    async def _wait_for_inflight_build(self) -> Optional[ContextSnapshot]:
        started = self._clock()
        for _ in range(self._config.poll_attempts):
            await self._sleep(self._config.poll_interval_seconds)
            snapshot = self._cache.read()
            if snapshot is not None and snapshot.built_at >= started:
                return snapshot
            if not self._cache.is_loading:
                # The other build finished without writing (it failed).
                return None
        return None

    async def _assemble(self, message: str) -> ContextSnapshot:
        intent = self._extractor.extract(message)
        simplified = self._preference.get()
        logger.debug("Using query intent for AI context: {}", intent)

        try:
            total = await self._store.count()
        except Exception as e:
            logger.exception("Error counting trades for AI context: {}", e)
            raise AIChatError(AIChatErrorType.STORAGE_UNAVAILABLE) from e

        if total <= 0:
            logger.info("No trades found in the journal")
            return self._empty_snapshot(intent, simplified)

        try:
            stats, oldest_record, newest_record = await asyncio.gather(
                self._store.summarize(),
                self._store.oldest(),
                self._store.newest(),
            )
        except Exception as e:
            logger.exception("Error loading trade aggregates for AI context: {}", e)
            raise AIChatError(AIChatErrorType.STORAGE_UNAVAILABLE) from e

        symbol = self._config.currency_symbol
        oldest = summarize_trade(oldest_record, symbol)
        newest = summarize_trade(newest_record, symbol)
        ceiling = self._config.context_token_ceiling

        while True:
            limit = self._sample_limit(simplified, intent)
            try:
                records = await self._store.query(
                    intent.order_by,
                    filter_strategy=intent.filter_strategy,
                    filter_symbol=intent.filter_symbol,
                    limit=limit,
                )
            except Exception as e:
                logger.exception("Error fetching trades for AI context: {}", e)
                raise AIChatError(AIChatErrorType.STORAGE_UNAVAILABLE) from e

            snapshot = self._render(
                intent, stats, list(records)[:limit], newest, oldest, simplified
            )
            if snapshot.estimated_tokens <= ceiling:
                return snapshot

            logger.warning(
                "Token count exceeds safe limit: {} > {} (simplified={})",
                snapshot.estimated_tokens,
                ceiling,
                simplified,
            )
            if simplified:
                return self._fit_by_truncation(
                    intent=intent,
                    stats=stats,
                    records=list(snapshot.sample_records),
                    newest=newest,
                    oldest=oldest,
                    simplified=True,
                    ceiling=ceiling,
                )

            # Persist the switch so later sessions start small as well.
            self._preference.set(True)
            self._cache.invalidate()
            simplified = True

    def _fit_by_truncation(
        self,
        *,
        intent: QueryIntent,
        stats: TradeStats,
        records: List[TradeRecord],
        newest: Optional[TradeSummary],
        oldest: Optional[TradeSummary],
        simplified: bool,
        ceiling: int,
    ) -> ContextSnapshot:
        floor = min(MIN_SAMPLE_LIMIT, len(records))
        snapshot = None
        for size in range(len(records), floor - 1, -1):
            snapshot = self._render(intent, stats, records[:size], newest, oldest, simplified)
            if snapshot.estimated_tokens <= ceiling:
                return snapshot

        logger.warning(
            "AI context still exceeds {} tokens with {} sample trade(s); proceeding",
            ceiling,
            floor,
        )
        return snapshot.model_copy(update={"budget_exceeded": True})

    def _render(
        self,
        intent: QueryIntent,
        stats: TradeStats,
        records: List[TradeRecord],
        newest: Optional[TradeSummary],
        oldest: Optional[TradeSummary],
        simplified: bool,
    ) -> ContextSnapshot:
        prompt = render_context_prompt(
            stats=stats,
            intent=intent,
            sample=[compact_trade(r) for r in records],
            most_recent=newest,
            oldest=oldest,
            pinned_total_pnl=self.pinned_total_pnl,
            currency_symbol=self._config.currency_symbol,
        )
        return ContextSnapshot(
            system_prompt=prompt,
            sample_records=records,
            total_record_count=stats.total_count,
            winning_record_count=stats.win_count,
            win_rate=stats.win_rate,
            aggregate_pnl=stats.total_pnl,
            screenshot_record_count=stats.screenshot_trade_count,
            most_recent_record_summary=newest,
            oldest_record_summary=oldest,
            intent_used_to_build=intent,
            simplified_mode=simplified,
            built_at=self._next_built_at(),
            estimated_tokens=estimate_tokens(prompt),
        )

    def _empty_snapshot(self, intent: QueryIntent, simplified: bool) -> ContextSnapshot:
        prompt = render_empty_prompt()
        return ContextSnapshot(
            system_prompt=prompt,
            sample_records=[],
            total_record_count=0,
            intent_used_to_build=intent,
            simplified_mode=simplified,
            built_at=self._next_built_at(),
            estimated_tokens=estimate_tokens(prompt),
        )

    @staticmethod
    def _sample_limit(simplified: bool, intent: QueryIntent) -> int:
        limit = SIMPLIFIED_SAMPLE_LIMIT if simplified else NORMAL_SAMPLE_LIMIT
        if intent.requested_count:
            limit = min(limit, intent.requested_count)
        return max(limit, MIN_SAMPLE_LIMIT)

    def _next_built_at(self) -> int:
        # Strictly increasing even when two builds land in the same millisecond.
        built_at = max(self._clock(), self._last_built_at + 1)
        self._last_built_at = built_at
        return built_at
