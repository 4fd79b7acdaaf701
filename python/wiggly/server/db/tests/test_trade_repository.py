"""
Tests for the SQL-backed trade repository and its async store adapter.
"""

from datetime import datetime, timedelta

import pytest

from wiggly.core.ai_chat.models import OrderBy, TradeType
from wiggly.server.db.connection import DatabaseManager, set_database_manager
from wiggly.server.db.repositories import SqlTradeStore, TradeRepository

START = datetime(2024, 2, 1, 10, 0)


@pytest.fixture()
def repo(tmp_path):
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'journal.db'}")
    manager.create_tables()
    set_database_manager(manager)
    try:
        yield TradeRepository()
    finally:
        set_database_manager(None)
        manager.engine.dispose()


def _seed(repo: TradeRepository) -> None:
    rows = [
        ("NIFTY", 100.0, "swing", "LONG"),
        ("BANKNIFTY", -50.0, "intraday scalping", "SHORT"),
        ("RELIANCE", 25.0, "Swing", "LONG"),
        ("TCS", None, None, "LONG"),
    ]
    for i, (symbol, pnl, strategy, side) in enumerate(rows):
        repo.add_trade(
            symbol=symbol,
            date=START + timedelta(days=i),
            pnl=pnl,
            type=side,
            quantity=1,
            strategy=strategy,
            screenshot_count=2 if symbol == "NIFTY" else 0,
        )


def test_empty_repository(repo):
    assert repo.count_trades() == 0
    assert repo.list_trades() == []
    assert repo.get_boundary_trade(oldest=True) is None
    stats = repo.get_trade_stats()
    assert stats.total_count == 0
    assert stats.total_pnl == 0
    assert stats.screenshot_trade_count == 0


def test_stats_cover_every_trade(repo):
    _seed(repo)
    stats = repo.get_trade_stats()
    assert stats.total_count == 4
    assert stats.win_count == 2
    assert stats.total_pnl == pytest.approx(75.0)
    assert stats.win_rate == pytest.approx(50.0)
    assert stats.screenshot_trade_count == 1


def test_ordering(repo):
    _seed(repo)
    newest = [t.symbol for t in repo.list_trades(OrderBy.NEWEST)]
    assert newest == ["TCS", "RELIANCE", "BANKNIFTY", "NIFTY"]

    oldest = [t.symbol for t in repo.list_trades(OrderBy.OLDEST, limit=2)]
    assert oldest == ["NIFTY", "BANKNIFTY"]

    highest = [t.symbol for t in repo.list_trades(OrderBy.HIGHEST_PNL)]
    assert highest == ["NIFTY", "RELIANCE", "TCS", "BANKNIFTY"]

    lowest = [t.symbol for t in repo.list_trades(OrderBy.LOWEST_PNL, limit=1)]
    assert lowest == ["BANKNIFTY"]


def test_filters_are_case_insensitive_substrings(repo):
    _seed(repo)
    swing = {t.symbol for t in repo.list_trades(strategy="swing")}
    assert swing == {"NIFTY", "RELIANCE"}

    nifty = {t.symbol for t in repo.list_trades(symbol="nifty")}
    assert nifty == {"NIFTY", "BANKNIFTY"}


@pytest.mark.asyncio
async def test_sql_store_returns_domain_records(repo):
    _seed(repo)
    store = SqlTradeStore(repo)

    assert await store.count() == 4

    records = await store.query(OrderBy.LOWEST_PNL, limit=2)
    assert [r.symbol for r in records] == ["BANKNIFTY", "TCS"]
    assert records[0].direction == TradeType.SHORT
    assert records[1].pnl == 0.0

    oldest = await store.oldest()
    newest = await store.newest()
    assert oldest.symbol == "NIFTY"
    assert newest.symbol == "TCS"

    stats = await store.summarize()
    assert stats.total_count == 4
    assert stats.total_pnl == pytest.approx(75.0)
