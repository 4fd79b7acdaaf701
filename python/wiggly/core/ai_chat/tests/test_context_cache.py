import pytest

from wiggly.core.ai_chat.cache import (
    ContextCache,
    is_cache_bypass_query,
    is_must_refresh_topic,
)
from wiggly.core.ai_chat.intent import extract_query_intent
from wiggly.core.ai_chat.models import ContextSnapshot


class FakeClock:
    def __init__(self, now: int = 1_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _snapshot(message: str, built_at: int) -> ContextSnapshot:
    return ContextSnapshot(
        system_prompt="prompt",
        intent_used_to_build=extract_query_intent(message),
        built_at=built_at,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock) -> ContextCache:
    return ContextCache(freshness_window_ms=120_000, clock=clock)


@pytest.mark.parametrize(
    "message",
    [
        "What's my total P&L?",
        "How much profit did I make?",
        "What was my first trade?",
        "Show my oldest trade",
        "When did I start trading?",
        "How is my performance?",
        "What is my pnl this year",
        "What were my profits?",
        "How much have I earned?",
        "Show my earnings",
        "Monthly totals please",
    ],
)
def test_must_refresh_topics(message):
    assert is_must_refresh_topic(message)


@pytest.mark.parametrize(
    "message",
    ["Show my best swing trades", "How did I do last month?", "totally unrelated"],
)
def test_other_topics_are_not_must_refresh(message):
    assert not is_must_refresh_topic(message)


@pytest.mark.parametrize(
    "message",
    ["Show my latest trades", "What happened today?", "Any recent losses?"],
)
def test_cache_bypass_queries(message):
    assert is_cache_bypass_query(message)


def test_empty_cache_is_invalid(cache):
    assert cache.read() is None
    assert cache.age_ms() is None
    assert not cache.is_valid("Show my best trades")


def test_fresh_snapshot_with_same_intent_is_valid(cache, clock):
    cache.write(_snapshot("Show my best trades", clock.now))
    clock.now += 60_000
    assert cache.is_valid("Show me my best trades please")
    assert cache.age_ms() == 60_000


def test_snapshot_expires_after_freshness_window(cache, clock):
    cache.write(_snapshot("Show my best trades", clock.now))
    clock.now += 120_000
    assert not cache.is_valid("Show my best trades")


def test_must_refresh_topic_bypasses_fresh_snapshot(cache, clock):
    cache.write(_snapshot("How did I do?", clock.now))
    assert not cache.is_valid("How much profit did I make?")


def test_inflected_financial_topic_bypasses_fresh_snapshot(cache, clock):
    cache.write(_snapshot("How did I do?", clock.now))
    assert not cache.is_valid("What were my profits?")
    assert not cache.is_valid("Show my earnings")


def test_bypass_keyword_skips_fresh_snapshot(cache, clock):
    cache.write(_snapshot("How did I do?", clock.now))
    assert not cache.is_valid("How did I do today?")


def test_changed_intent_invalidates_snapshot(cache, clock):
    cache.write(_snapshot("Show my best trades", clock.now))
    assert not cache.is_valid("Show my worst trades")


def test_write_clears_loading_flag(cache, clock):
    cache.set_loading(True)
    assert cache.is_loading
    cache.write(_snapshot("hi", clock.now))
    assert not cache.is_loading


def test_invalidate_drops_snapshot_but_not_loading_flag(cache, clock):
    cache.write(_snapshot("hi", clock.now))
    cache.set_loading(True)
    cache.invalidate()
    assert cache.read() is None
    assert cache.is_loading


def test_last_write_wins(cache, clock):
    first = _snapshot("hi", clock.now)
    second = _snapshot("hi", clock.now + 1)
    cache.write(first)
    cache.write(second)
    assert cache.read() is second


def test_listeners_are_notified_and_can_unsubscribe(cache, clock):
    events = []
    unsubscribe = cache.subscribe(events.append)

    cache.write(_snapshot("hi", clock.now))
    cache.invalidate()
    unsubscribe()
    cache.write(_snapshot("hi", clock.now + 5))

    assert events == [clock.now, None]


def test_failing_listener_does_not_break_writes(cache, clock):
    def boom(_):
        raise RuntimeError("listener failed")

    seen = []
    cache.subscribe(boom)
    cache.subscribe(seen.append)
    cache.write(_snapshot("hi", clock.now))

    assert cache.read() is not None
    assert seen == [clock.now]


def test_separate_instances_do_not_share_state(clock):
    a = ContextCache(clock=clock)
    b = ContextCache(clock=clock)
    a.write(_snapshot("hi", clock.now))
    a.set_loading(True)
    assert b.read() is None
    assert not b.is_loading
