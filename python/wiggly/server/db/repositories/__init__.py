"""Repository accessors for the Wiggly server."""

from typing import Optional

from sqlalchemy.orm import Session

from .trade_repository import SqlTradeStore, TradeRepository, trade_to_record


def get_trade_repository(db_session: Optional[Session] = None) -> TradeRepository:
    return TradeRepository(db_session=db_session)


__all__ = [
    "TradeRepository",
    "SqlTradeStore",
    "trade_to_record",
    "get_trade_repository",
]
