from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from wiggly.core.ai_chat.models import OrderBy, TradeRecord, TradeStats

# Contracts for the trade storage and credential collaborators (read-only use).


class BaseTradeStore(ABC):
    """Read access to a user's trade journal."""

    @abstractmethod
    async def count(self) -> int:
        """Return the total number of trades."""
        raise NotImplementedError

    @abstractmethod
    async def query(
        self,
        order_by: OrderBy,
        filter_strategy: Optional[str] = None,
        filter_symbol: Optional[str] = None,
        limit: int = 10,
    ) -> List[TradeRecord]:
        """Return at most ``limit`` trades ordered and filtered as requested.

        Filters are case-insensitive substring matches.
        """
        raise NotImplementedError

    @abstractmethod
    async def oldest(self) -> Optional[TradeRecord]:
        """Return the first trade ever recorded, if any."""
        raise NotImplementedError

    @abstractmethod
    async def newest(self) -> Optional[TradeRecord]:
        """Return the most recent trade, if any."""
        raise NotImplementedError

    async def summarize(self) -> TradeStats:
        """Aggregate win count and total P&L over the whole history.

        Stores that can aggregate natively should override this; the default
        pulls every record through :meth:`query`.
        """
        total = await self.count()
        if total <= 0:
            return TradeStats()
        records = await self.query(OrderBy.NEWEST, limit=total)
        return TradeStats(
            total_count=len(records),
            win_count=sum(1 for r in records if r.pnl > 0),
            total_pnl=sum(r.pnl for r in records),
            screenshot_trade_count=sum(1 for r in records if r.screenshot_count > 0),
        )


class BaseCredentialStore(ABC):
    """Holds the user's model-provider API key."""

    @abstractmethod
    def get_credential(self) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set_credential(self, credential: str) -> bool:
        """Persist ``credential``; returns False when it is rejected."""
        raise NotImplementedError

    @abstractmethod
    def clear_credential(self) -> None:
        raise NotImplementedError
