import asyncio
from typing import Iterable, List, Optional

from wiggly.core.ai_chat.models import OrderBy, TradeRecord, TradeStats

from .interfaces import BaseTradeStore


def matches_filters(
    record: TradeRecord,
    filter_strategy: Optional[str] = None,
    filter_symbol: Optional[str] = None,
) -> bool:
    if filter_strategy and filter_strategy.lower() not in (record.strategy or "").lower():
        return False
    if filter_symbol and filter_symbol.lower() not in (record.symbol or "").lower():
        return False
    return True


def sort_records(records: Iterable[TradeRecord], order_by: OrderBy) -> List[TradeRecord]:
    if order_by == OrderBy.HIGHEST_PNL:
        return sorted(records, key=lambda r: r.pnl, reverse=True)
    if order_by == OrderBy.LOWEST_PNL:
        return sorted(records, key=lambda r: r.pnl)
    if order_by == OrderBy.OLDEST:
        return sorted(records, key=lambda r: r.date)
    return sorted(records, key=lambda r: r.date, reverse=True)


class InMemoryTradeStore(BaseTradeStore):
    """In-memory trade store, used for tests and local demos.

    ``latency`` adds an ``asyncio.sleep`` before every call so concurrent
    callers interleave the way they would against a real database.
    """

    def __init__(
        self, records: Optional[Iterable[TradeRecord]] = None, latency: float = 0.0
    ) -> None:
        self.records: List[TradeRecord] = list(records or [])
        self.latency = latency
        self.calls: List[str] = []

    async def _touch(self, name: str) -> None:
        self.calls.append(name)
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    async def count(self) -> int:
        await self._touch("count")
        return len(self.records)

    async def query(
        self,
        order_by: OrderBy,
        filter_strategy: Optional[str] = None,
        filter_symbol: Optional[str] = None,
        limit: int = 10,
    ) -> List[TradeRecord]:
        await self._touch("query")
        selected = [
            r for r in self.records if matches_filters(r, filter_strategy, filter_symbol)
        ]
        return sort_records(selected, order_by)[: max(limit, 0)]

    async def oldest(self) -> Optional[TradeRecord]:
        await self._touch("oldest")
        ordered = sort_records(self.records, OrderBy.OLDEST)
        return ordered[0] if ordered else None

    async def newest(self) -> Optional[TradeRecord]:
        await self._touch("newest")
        ordered = sort_records(self.records, OrderBy.NEWEST)
        return ordered[0] if ordered else None

    async def summarize(self) -> TradeStats:
        await self._touch("summarize")
        return TradeStats(
            total_count=len(self.records),
            win_count=sum(1 for r in self.records if r.pnl > 0),
            total_pnl=sum(r.pnl for r in self.records),
            screenshot_trade_count=sum(
                1 for r in self.records if r.screenshot_count > 0
            ),
        )
