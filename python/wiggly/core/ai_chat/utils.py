from typing import Any, Dict, Optional

from .constants import DEFAULT_CURRENCY_SYMBOL, MAX_LABEL_CHARS
from .models import TradeRecord, TradeSummary


def format_indian_currency(
    value: Optional[float], symbol: str = DEFAULT_CURRENCY_SYMBOL
) -> str:
    """Format ``value`` with Indian digit grouping, e.g. ``₹2,46,000``.

    Whole amounts are printed without decimals; fractional amounts keep two.
    """
    if value is None:
        return f"{symbol}0"
    amount = round(float(value), 2)
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    whole = int(amount)
    fraction = round(amount - whole, 2)

    digits = str(whole)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])

    if fraction:
        return f"{sign}{symbol}{digits}.{int(round(fraction * 100)):02d}"
    return f"{sign}{symbol}{digits}"


def clip_label(value: Optional[str], limit: int = MAX_LABEL_CHARS) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) <= limit:
        return value
    return value[: max(limit - 1, 0)] + "…"


def prune_none(obj: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in obj.items() if v is not None}


def compact_trade(record: TradeRecord) -> Dict[str, Any]:
    """Reduce a trade to the fields the assistant needs, to save tokens."""
    return prune_none(
        {
            "id": record.id,
            "symbol": record.symbol,
            "type": record.direction.value,
            "entry_price": record.entry_price,
            "exit_price": record.exit_price,
            "quantity": record.quantity,
            "pnl": record.pnl,
            "date": record.date.date().isoformat(),
            "strategy": clip_label(record.strategy),
            "mood": clip_label(record.mood),
            "screenshots": record.screenshot_count or None,
        }
    )


def summarize_trade(
    record: Optional[TradeRecord], currency_symbol: str = DEFAULT_CURRENCY_SYMBOL
) -> Optional[TradeSummary]:
    if record is None:
        return None
    return TradeSummary(
        symbol=record.symbol,
        date=record.date.date().isoformat(),
        direction=record.direction,
        pnl=record.pnl,
        pnl_display=format_indian_currency(record.pnl, currency_symbol),
    )
