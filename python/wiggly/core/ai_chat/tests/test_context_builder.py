import asyncio
import json
from datetime import datetime, timedelta
from typing import List

import pytest

from wiggly.core.ai_chat.builder import ContextBuilder
from wiggly.core.ai_chat.cache import ContextCache
from wiggly.core.ai_chat.errors import AIChatError, AIChatErrorType
from wiggly.core.ai_chat.in_memory import InMemoryTradeStore
from wiggly.core.ai_chat.interfaces import BaseTradeStore
from wiggly.core.ai_chat.models import (
    AIChatConfig,
    OrderBy,
    TradeRecord,
    TradeStats,
    TradeType,
)
from wiggly.core.ai_chat.preferences import SimplifiedModePreference
from wiggly.core.ai_chat.tokens import estimate_tokens

START = datetime(2024, 1, 1, 9, 15)


def _trade(i: int, pnl: float, **overrides) -> TradeRecord:
    values = dict(
        id=str(i),
        symbol="NIFTY",
        direction=TradeType.LONG,
        entry_price=100.0,
        exit_price=100.0 + pnl,
        quantity=1,
        pnl=pnl,
        date=START + timedelta(days=i),
        strategy="swing",
        mood="calm",
    )
    values.update(overrides)
    return TradeRecord(**values)


def _builder(records: List[TradeRecord], **kwargs) -> ContextBuilder:
    store = kwargs.pop("store", None) or InMemoryTradeStore(records)
    config = kwargs.pop("config", None) or AIChatConfig(poll_interval_seconds=0.01)
    return ContextBuilder(
        store,
        kwargs.pop("cache", None) or ContextCache(config.freshness_window_ms),
        kwargs.pop("preference", None) or SimplifiedModePreference(),
        config,
        **kwargs,
    )


class FailingStore(InMemoryTradeStore):
    async def count(self) -> int:
        raise RuntimeError("database is locked")


@pytest.mark.asyncio
async def test_second_build_reuses_cached_snapshot():
    builder = _builder([_trade(i, 10.0) for i in range(3)])
    first = await builder.build("How did I do last month?")
    second = await builder.build("How did I do last month?")

    assert second.built_at == first.built_at
    assert builder._store.calls.count("count") == 1


@pytest.mark.asyncio
async def test_invalidate_forces_a_later_build():
    builder = _builder([_trade(i, 10.0) for i in range(3)])
    first = await builder.build("How did I do last month?")
    builder.cache.invalidate()
    second = await builder.build("How did I do last month?")

    assert second.built_at > first.built_at
    assert builder._store.calls.count("count") == 2


@pytest.mark.asyncio
async def test_snapshot_always_within_context_ceiling():
    records = [_trade(i, float(i - 20)) for i in range(40)]
    builder = _builder(records)
    snapshot = await builder.build("Show my worst trades")

    assert snapshot.estimated_tokens == estimate_tokens(snapshot.system_prompt)
    assert snapshot.estimated_tokens <= AIChatConfig().context_token_ceiling
    assert len(snapshot.sample_records) == 10
    assert not snapshot.simplified_mode
    assert [r.pnl for r in snapshot.sample_records] == sorted(
        r.pnl for r in snapshot.sample_records
    )


@pytest.mark.asyncio
async def test_aggregates_cover_whole_history_not_the_sample():
    records = [_trade(i, 100.0 if i % 2 == 0 else -40.0) for i in range(200)]
    builder = _builder(records)
    snapshot = await builder.build("How did I do last month?")

    assert len(snapshot.sample_records) == 10
    assert snapshot.total_record_count == 200
    assert snapshot.winning_record_count == 100
    assert snapshot.win_rate == pytest.approx(50.0)
    assert snapshot.aggregate_pnl == pytest.approx(6000.0)
    assert "ALL 200 trades" in snapshot.system_prompt
    assert "Total P&L: ₹6,000" in snapshot.system_prompt


@pytest.mark.asyncio
async def test_empty_journal_yields_terminal_snapshot():
    builder = _builder([])
    snapshot = await builder.build("What's my win rate?")

    assert snapshot.sample_records == []
    assert snapshot.total_record_count == 0
    assert "adding their first trade" in snapshot.system_prompt
    assert builder._store.calls == ["count"]


@pytest.mark.asyncio
async def test_three_trade_aggregates():
    builder = _builder([_trade(0, 100.0), _trade(1, -50.0), _trade(2, 25.0)])
    snapshot = await builder.build("How did I do last month?")

    assert snapshot.win_rate == pytest.approx(66.67, abs=0.01)
    assert snapshot.aggregate_pnl == pytest.approx(75.0)
    assert "Win rate: 66.7% (2 winning trades)" in snapshot.system_prompt


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message, order_by",
    [
        ("What was my first trade?", OrderBy.OLDEST),
        ("What was my best trade?", OrderBy.HIGHEST_PNL),
        ("Show my worst trades", OrderBy.LOWEST_PNL),
    ],
)
async def test_first_trade_is_embedded_for_any_ordering(message, order_by):
    records = [_trade(i, float(i * 10)) for i in range(1, 30)]
    records.append(_trade(0, 5.0, symbol="RELIANCE"))
    builder = _builder(records)
    snapshot = await builder.build(message)

    assert snapshot.intent_used_to_build.order_by == order_by
    assert snapshot.oldest_record_summary.symbol == "RELIANCE"
    expected = json.dumps(
        {"symbol": "RELIANCE", "date": "2024-01-01", "type": "LONG", "pnl": "₹5"},
        ensure_ascii=False,
    )
    assert f"First trade ever: {expected}" in snapshot.system_prompt


@pytest.mark.asyncio
async def test_requested_count_caps_the_sample():
    builder = _builder([_trade(i, float(i)) for i in range(20)])
    snapshot = await builder.build("Show my top 3 trades")
    assert [r.pnl for r in snapshot.sample_records] == [19.0, 18.0, 17.0]


@pytest.mark.asyncio
async def test_filter_with_no_matches_keeps_overall_stats():
    builder = _builder([_trade(i, 10.0) for i in range(5)])
    snapshot = await builder.build("How are my intraday trades?")

    assert snapshot.sample_records == []
    assert snapshot.total_record_count == 5
    assert "No trades matched" in snapshot.system_prompt


@pytest.mark.asyncio
async def test_simplified_mode_samples_five():
    preference = SimplifiedModePreference()
    preference.set(True)
    builder = _builder([_trade(i, 1.0) for i in range(20)], preference=preference)
    snapshot = await builder.build("How did I do last month?")

    assert snapshot.simplified_mode
    assert len(snapshot.sample_records) == 5


@pytest.mark.asyncio
async def test_oversized_context_switches_to_simplified_mode():
    long_label = "x" * 500
    records = [
        _trade(i, float(i), strategy=f"swing {long_label}", mood=long_label)
        for i in range(20)
    ]
    message = "How did I do last month?"

    normal = await _builder(records).build(message)
    small_pref = SimplifiedModePreference()
    small_pref.set(True)
    simplified = await _builder(records, preference=small_pref).build(message)
    assert simplified.estimated_tokens < normal.estimated_tokens

    ceiling = (normal.estimated_tokens + simplified.estimated_tokens) // 2
    preference = SimplifiedModePreference()
    builder = _builder(
        records,
        preference=preference,
        config=AIChatConfig(context_token_ceiling=ceiling),
    )
    snapshot = await builder.build(message)

    assert snapshot.simplified_mode
    assert len(snapshot.sample_records) <= 5
    assert snapshot.estimated_tokens <= ceiling
    assert not snapshot.budget_exceeded
    assert preference.get() is True


@pytest.mark.asyncio
async def test_simplified_overflow_drops_sample_trades():
    records = [_trade(i, float(i), mood="m" * 120) for i in range(20)]
    message = "How did I do last month?"
    preference = SimplifiedModePreference()
    preference.set(True)
    full = await _builder(records, preference=preference).build(message)

    ceiling = full.estimated_tokens - 1
    snapshot = await _builder(
        records,
        preference=preference,
        config=AIChatConfig(context_token_ceiling=ceiling),
    ).build(message)

    assert 1 <= len(snapshot.sample_records) < 5
    assert snapshot.estimated_tokens <= ceiling
    assert not snapshot.budget_exceeded


@pytest.mark.asyncio
async def test_unreachable_ceiling_flags_budget_exceeded():
    builder = _builder(
        [_trade(i, float(i)) for i in range(20)],
        config=AIChatConfig(context_token_ceiling=10),
    )
    snapshot = await builder.build("How did I do last month?")

    assert snapshot.budget_exceeded
    assert snapshot.simplified_mode
    assert len(snapshot.sample_records) == 1


@pytest.mark.asyncio
async def test_shrink_to_fit_needs_no_storage():
    builder = _builder([_trade(i, float(i)) for i in range(20)])
    snapshot = await builder.build("How did I do last month?")
    calls = list(builder._store.calls)

    shrunk = builder.shrink_to_fit(snapshot, snapshot.estimated_tokens - 1)

    assert builder._store.calls == calls
    assert len(shrunk.sample_records) < len(snapshot.sample_records)
    assert shrunk.total_record_count == snapshot.total_record_count
    assert shrunk.aggregate_pnl == snapshot.aggregate_pnl
    assert builder.shrink_to_fit(snapshot, snapshot.estimated_tokens) is snapshot


@pytest.mark.asyncio
async def test_storage_failure_is_classified_and_clears_loading():
    builder = _builder([], store=FailingStore())
    with pytest.raises(AIChatError) as exc_info:
        await builder.build("How did I do?")

    assert exc_info.value.error_type == AIChatErrorType.STORAGE_UNAVAILABLE
    assert not builder.cache.is_loading
    assert builder.cache.read() is None


@pytest.mark.asyncio
async def test_concurrent_builds_share_one_storage_pass():
    store = InMemoryTradeStore([_trade(i, 10.0) for i in range(5)], latency=0.02)
    builder = _builder(
        [], store=store, config=AIChatConfig(poll_interval_seconds=0.05)
    )
    message = "How did I do last month?"

    first, second = await asyncio.wait_for(
        asyncio.gather(builder.build(message), builder.build(message)), timeout=5
    )

    assert first.built_at == second.built_at
    assert store.calls.count("count") == 1
    assert not builder.cache.is_loading


@pytest.mark.asyncio
async def test_waiter_builds_on_its_own_after_bounded_polling():
    sleeps = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    config = AIChatConfig(poll_interval_seconds=0.25, poll_attempts=3)
    builder = _builder([_trade(0, 10.0)], config=config, sleep=fake_sleep)
    builder.cache.set_loading(True)  # a build that never finishes

    snapshot = await builder.build("How did I do?")

    assert sleeps == [0.25, 0.25, 0.25]
    assert snapshot.total_record_count == 1
    assert not builder.cache.is_loading


@pytest.mark.asyncio
async def test_waiter_stops_polling_when_other_build_fails():
    sleeps = []
    builder = None

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        builder.cache.set_loading(False)

    builder = _builder([_trade(0, 10.0)], sleep=fake_sleep)
    builder.cache.set_loading(True)

    snapshot = await builder.build("How did I do?")

    assert len(sleeps) == 1
    assert snapshot.total_record_count == 1


@pytest.mark.asyncio
async def test_pinned_total_pnl_is_embedded():
    builder = _builder([_trade(0, 10.0)])
    builder.pinned_total_pnl = 246000
    snapshot = await builder.build("How did I do?")

    assert "Dashboard total P&L: ₹2,46,000" in snapshot.system_prompt
    assert "Total P&L: ₹10" in snapshot.system_prompt


@pytest.mark.asyncio
async def test_screenshots_and_long_labels_are_compacted():
    record = _trade(0, 10.0, strategy="s" * 500, screenshot_count=3)
    builder = _builder([record])
    snapshot = await builder.build("How did I do?")

    assert "s" * 500 not in snapshot.system_prompt
    assert '"screenshots":3' in snapshot.system_prompt


@pytest.mark.asyncio
async def test_screenshot_trade_count_covers_whole_history():
    records = [_trade(i, 1.0, screenshot_count=i % 3) for i in range(30)]
    builder = _builder(records)
    snapshot = await builder.build("How did I do last month?")

    assert snapshot.screenshot_record_count == 20
    assert "Trades with screenshots: 20" in snapshot.system_prompt

    shrunk = builder.shrink_to_fit(snapshot, snapshot.estimated_tokens - 1)
    assert "Trades with screenshots: 20" in shrunk.system_prompt


class DefaultSummaryStore(InMemoryTradeStore):
    summarize = BaseTradeStore.summarize


@pytest.mark.asyncio
async def test_default_summary_aggregates_through_query():
    store = DefaultSummaryStore(
        [_trade(0, 100.0, screenshot_count=2), _trade(1, -50.0), _trade(2, 25.0)]
    )
    stats = await store.summarize()

    assert stats.total_count == 3
    assert stats.win_count == 2
    assert stats.total_pnl == pytest.approx(75.0)
    assert stats.screenshot_trade_count == 1
    assert await DefaultSummaryStore([]).summarize() == TradeStats()
