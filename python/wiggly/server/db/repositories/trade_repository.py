"""
Wiggly Server - Trade Repository

Read access to journal trades for the AI chat layer, plus a thin async
adapter (:class:`SqlTradeStore`) implementing the chat layer's storage
contract on top of it.
"""

import asyncio
from datetime import datetime
from typing import List, Optional

from sqlalchemy import asc, case, desc, func
from sqlalchemy.orm import Session

from wiggly.core.ai_chat.interfaces import BaseTradeStore
from wiggly.core.ai_chat.models import OrderBy, TradeRecord, TradeStats, TradeType

from ..connection import get_database_manager
from ..models.trade import Trade


class TradeRepository:
    """Repository for journal trades."""

    def __init__(self, db_session: Optional[Session] = None):
        self.db_session = db_session

    def _get_session(self) -> Session:
        if self.db_session:
            return self.db_session
        return get_database_manager().get_session()

    def count_trades(self) -> int:
        session = self._get_session()
        try:
            return int(session.query(func.count(Trade.id)).scalar() or 0)
        finally:
            if not self.db_session:
                session.close()

    def list_trades(
        self,
        order_by: OrderBy = OrderBy.NEWEST,
        strategy: Optional[str] = None,
        symbol: Optional[str] = None,
        limit: int = 10,
    ) -> List[Trade]:
        """Return trades ordered per ``order_by`` with substring filters."""
        session = self._get_session()
        try:
            q = session.query(Trade)
            if strategy:
                q = q.filter(Trade.strategy.ilike(f"%{strategy}%"))
            if symbol:
                q = q.filter(Trade.symbol.ilike(f"%{symbol}%"))

            pnl = func.coalesce(Trade.pnl, 0)
            if order_by == OrderBy.HIGHEST_PNL:
                q = q.order_by(desc(pnl), desc(Trade.date))
            elif order_by == OrderBy.LOWEST_PNL:
                q = q.order_by(asc(pnl), desc(Trade.date))
            elif order_by == OrderBy.OLDEST:
                q = q.order_by(asc(Trade.date), asc(Trade.id))
            else:
                q = q.order_by(desc(Trade.date), desc(Trade.id))

            items = q.limit(max(limit, 0)).all()
            for item in items:
                session.expunge(item)
            return items
        finally:
            if not self.db_session:
                session.close()

    def get_boundary_trade(self, oldest: bool) -> Optional[Trade]:
        items = self.list_trades(
            order_by=OrderBy.OLDEST if oldest else OrderBy.NEWEST, limit=1
        )
        return items[0] if items else None

    def get_trade_stats(self) -> TradeStats:
        """Aggregate over every trade in a single query."""
        session = self._get_session()
        try:
            total, wins, total_pnl, with_screenshots = session.query(
                func.count(Trade.id),
                func.coalesce(func.sum(case((Trade.pnl > 0, 1), else_=0)), 0),
                func.coalesce(func.sum(Trade.pnl), 0),
                func.coalesce(
                    func.sum(case((Trade.screenshot_count > 0, 1), else_=0)), 0
                ),
            ).one()
            return TradeStats(
                total_count=int(total or 0),
                win_count=int(wins or 0),
                total_pnl=float(total_pnl or 0),
                screenshot_trade_count=int(with_screenshots or 0),
            )
        finally:
            if not self.db_session:
                session.close()

    def add_trade(
        self,
        symbol: str,
        date: datetime,
        pnl: Optional[float] = None,
        type: str = "LONG",
        quantity: float = 0.0,
        entry_price: Optional[float] = None,
        exit_price: Optional[float] = None,
        strategy: Optional[str] = None,
        mood: Optional[str] = None,
        screenshot_count: int = 0,
        user_id: Optional[str] = None,
    ) -> Optional[Trade]:
        """Insert one trade (used by seeding scripts and tests)."""
        session = self._get_session()
        try:
            item = Trade(
                symbol=symbol,
                date=date,
                pnl=pnl,
                type=type,
                quantity=quantity,
                entry_price=entry_price,
                exit_price=exit_price,
                strategy=strategy,
                mood=mood,
                screenshot_count=screenshot_count,
                user_id=user_id,
            )
            session.add(item)
            session.commit()
            session.refresh(item)
            session.expunge(item)
            return item
        except Exception:
            session.rollback()
            return None
        finally:
            if not self.db_session:
                session.close()


def trade_to_record(trade: Trade) -> TradeRecord:
    direction = (trade.type or "LONG").upper()
    return TradeRecord(
        id=str(trade.id) if trade.id is not None else None,
        symbol=trade.symbol,
        direction=TradeType(direction) if direction in TradeType.__members__ else TradeType.LONG,
        entry_price=float(trade.entry_price) if trade.entry_price is not None else None,
        exit_price=float(trade.exit_price) if trade.exit_price is not None else None,
        quantity=float(trade.quantity or 0),
        pnl=float(trade.pnl or 0),
        date=trade.date,
        strategy=trade.strategy,
        mood=trade.mood,
        screenshot_count=int(trade.screenshot_count or 0),
    )


class SqlTradeStore(BaseTradeStore):
    """Async storage contract backed by :class:`TradeRepository`.

    Repository calls use blocking sessions, so each runs in a worker thread.
    """

    def __init__(self, repository: Optional[TradeRepository] = None) -> None:
        self._repo = repository or TradeRepository()

    async def count(self) -> int:
        return await asyncio.to_thread(self._repo.count_trades)

    async def query(
        self,
        order_by: OrderBy,
        filter_strategy: Optional[str] = None,
        filter_symbol: Optional[str] = None,
        limit: int = 10,
    ) -> List[TradeRecord]:
        trades = await asyncio.to_thread(
            self._repo.list_trades, order_by, filter_strategy, filter_symbol, limit
        )
        return [trade_to_record(t) for t in trades]

    async def oldest(self) -> Optional[TradeRecord]:
        trade = await asyncio.to_thread(self._repo.get_boundary_trade, True)
        return trade_to_record(trade) if trade else None

    async def newest(self) -> Optional[TradeRecord]:
        trade = await asyncio.to_thread(self._repo.get_boundary_trade, False)
        return trade_to_record(trade) if trade else None

    async def summarize(self) -> TradeStats:
        return await asyncio.to_thread(self._repo.get_trade_stats)
