"""System prompt templates for the trade-journal assistant.

The prompts carry ONLY the assistant's role plus the data the builder
assembled. Rendering is deterministic: the same inputs always produce the
same text, so token estimates are stable across rebuilds.
"""

import json
from typing import Any, Dict, List, Optional

from .constants import ASSISTANT_NAME, DEFAULT_CURRENCY_SYMBOL
from .models import QueryIntent, TradeStats, TradeSummary
from .utils import format_indian_currency

EMPTY_JOURNAL_PROMPT: str = """
You are a trading assistant for a platform named {assistant_name}. You help analyze trades, provide insights, and answer questions about trading activity.

IMPORTANT: The user has not recorded any trades yet. When they ask about trades, their first trade, statistics or performance, tell them there are no trades in their journal yet and suggest they start by adding their first trade.

Example questions the user might ask:
- What was my win rate last month?
- What was my most profitable trade?
- What was my first trade ever?

Always respond in a helpful and encouraging way, letting them know they need to add trades first.
""".strip()

CONTEXT_PROMPT: str = """
You are a trading assistant for {assistant_name}. You analyze the user's trade journal.

OVERALL STATISTICS (computed over ALL {total_count} trades in the journal):
- Total trades: {total_count}
- Win rate: {win_rate:.1f}% ({win_count} winning trades)
- Total P&L: {total_pnl}
- Trades with screenshots: {screenshot_count}
{pinned_section}
KEY REFERENCE POINTS:
- Most recent trade: {most_recent}
- First trade ever: {oldest}

SAMPLE TRADES ({sample_count} of {total_count}, {sample_description}):
{sample_json}

{sample_note}

Format currency amounts like {currency_example} (Indian digit grouping).
Use tables for structured data.
""".strip()

PINNED_SECTION: str = """
- Dashboard total P&L: {pinned_total}. When asked about total P&L or total profits, report this dashboard figure; it is authoritative over the computed total above.
"""

SAMPLE_NOTE: str = (
    "The sample is only a subset of the journal. Use the overall statistics for "
    "totals and rates; never compute totals, win rates or counts from the sample."
)

NO_MATCH_NOTE: str = (
    "No trades matched the user's filter ({filters}). Tell the user that no "
    "trades match their specific query and suggest adjusting it; the overall "
    "statistics above still describe the whole journal."
)

_ORDER_DESCRIPTIONS = {
    "newest": "most recent first",
    "oldest": "oldest first",
    "highest_pnl": "highest P&L first",
    "lowest_pnl": "lowest P&L first",
}


def describe_sample(intent: QueryIntent) -> str:
    parts = [_ORDER_DESCRIPTIONS.get(intent.order_by.value, intent.order_by.value)]
    if intent.filter_strategy:
        parts.append(f"strategy contains '{intent.filter_strategy}'")
    if intent.filter_symbol:
        parts.append(f"symbol contains '{intent.filter_symbol}'")
    return ", ".join(parts)


def _summary_json(summary: Optional[TradeSummary]) -> str:
    if summary is None:
        return "None"
    payload = {
        "symbol": summary.symbol,
        "date": summary.date,
        "type": summary.direction.value,
        "pnl": summary.pnl_display,
    }
    return json.dumps(payload, ensure_ascii=False)


def render_empty_prompt(assistant_name: str = ASSISTANT_NAME) -> str:
    return EMPTY_JOURNAL_PROMPT.format(assistant_name=assistant_name)


def render_context_prompt(
    *,
    stats: TradeStats,
    intent: QueryIntent,
    sample: List[Dict[str, Any]],
    most_recent: Optional[TradeSummary],
    oldest: Optional[TradeSummary],
    pinned_total_pnl: Optional[float] = None,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    assistant_name: str = ASSISTANT_NAME,
) -> str:
    pinned_section = ""
    if pinned_total_pnl is not None:
        pinned_section = PINNED_SECTION.format(
            pinned_total=format_indian_currency(pinned_total_pnl, currency_symbol)
        )

    if sample:
        sample_note = SAMPLE_NOTE
    else:
        filters = describe_sample(intent)
        sample_note = NO_MATCH_NOTE.format(filters=filters)

    return CONTEXT_PROMPT.format(
        assistant_name=assistant_name,
        total_count=stats.total_count,
        win_rate=stats.win_rate,
        win_count=stats.win_count,
        total_pnl=format_indian_currency(stats.total_pnl, currency_symbol),
        screenshot_count=stats.screenshot_trade_count,
        pinned_section=pinned_section,
        most_recent=_summary_json(most_recent),
        oldest=_summary_json(oldest),
        sample_count=len(sample),
        sample_description=describe_sample(intent),
        sample_json=json.dumps(sample, ensure_ascii=False, separators=(",", ":")),
        sample_note=sample_note,
        currency_example=format_indian_currency(100000, currency_symbol),
    )
