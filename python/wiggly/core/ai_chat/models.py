import os
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import (
    DEFAULT_CHAT_MODEL,
    DEFAULT_CONTEXT_TOKEN_CEILING,
    DEFAULT_CURRENCY_SYMBOL,
    DEFAULT_FRESHNESS_WINDOW_MS,
    DEFAULT_MAX_REPLY_TOKENS,
    DEFAULT_MESSAGE_OVERHEAD_TOKENS,
    DEFAULT_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_REQUEST_TOKEN_CEILING,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_SECONDS,
    NORMAL_SAMPLE_LIMIT,
    SIMPLIFIED_SAMPLE_LIMIT,
)


class TradeType(str, Enum):
    """Semantic trade direction."""

    LONG = "LONG"
    SHORT = "SHORT"


class OrderBy(str, Enum):
    """Ordering applied to the sampled slice of trades."""

    NEWEST = "newest"
    OLDEST = "oldest"
    HIGHEST_PNL = "highest_pnl"
    LOWEST_PNL = "lowest_pnl"


class TradeMutationKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class TradeRecord(BaseModel):
    """A journal trade as owned by the persistence layer (read-only here)."""

    id: Optional[str] = Field(default=None, description="Trade identifier")
    symbol: str = Field(..., description="Instrument symbol")
    direction: TradeType = Field(default=TradeType.LONG, description="LONG or SHORT")
    entry_price: Optional[float] = Field(default=None, description="Entry price")
    exit_price: Optional[float] = Field(default=None, description="Exit price")
    quantity: float = Field(default=0.0, description="Traded quantity")
    pnl: float = Field(default=0.0, description="Realized profit or loss")
    date: datetime = Field(..., description="Trade date")
    strategy: Optional[str] = Field(default=None, description="Free-text strategy")
    mood: Optional[str] = Field(default=None, description="Free-text mood label")
    screenshot_count: int = Field(
        default=0, description="Number of attached screenshots (content omitted)"
    )


class TradeSummary(BaseModel):
    """Minimal view of a boundary trade (first ever / most recent)."""

    symbol: str
    date: str
    direction: TradeType
    pnl: float
    pnl_display: str


class TradeStats(BaseModel):
    """Aggregates over the whole trade history, not just the sampled slice."""

    total_count: int = 0
    win_count: int = 0
    total_pnl: float = 0.0
    screenshot_trade_count: int = Field(
        default=0, description="Trades with at least one attached screenshot"
    )

    @property
    def win_rate(self) -> float:
        """Percentage of trades with a strictly positive P&L."""
        if self.total_count <= 0:
            return 0.0
        return self.win_count / self.total_count * 100.0


class QueryIntent(BaseModel):
    """Selection directive derived from a single user message."""

    model_config = ConfigDict(frozen=True)

    order_by: OrderBy = OrderBy.NEWEST
    filter_strategy: Optional[str] = None
    filter_symbol: Optional[str] = None
    requested_count: Optional[int] = Field(
        default=None, description="Number asked for, e.g. 'top 5'", gt=0
    )


class ContextSnapshot(BaseModel):
    """The cached unit of prompt material sent alongside a user message."""

    model_config = ConfigDict(frozen=True)

    system_prompt: str
    sample_records: List[TradeRecord] = Field(default_factory=list)
    total_record_count: int = 0
    winning_record_count: int = 0
    win_rate: float = 0.0
    aggregate_pnl: float = 0.0
    screenshot_record_count: int = 0
    most_recent_record_summary: Optional[TradeSummary] = None
    oldest_record_summary: Optional[TradeSummary] = None
    intent_used_to_build: QueryIntent = Field(default_factory=QueryIntent)
    simplified_mode: bool = False
    built_at: int = Field(..., description="Build time in epoch milliseconds")
    estimated_tokens: int = 0
    budget_exceeded: bool = False

    @model_validator(mode="after")
    def _check_sample_bound(self) -> "ContextSnapshot":
        limit = SIMPLIFIED_SAMPLE_LIMIT if self.simplified_mode else NORMAL_SAMPLE_LIMIT
        if len(self.sample_records) > limit:
            raise ValueError(
                f"sample_records has {len(self.sample_records)} entries, "
                f"limit is {limit} (simplified={self.simplified_mode})"
            )
        return self


class TradeMutationEvent(BaseModel):
    """Notification that a trade was created, edited or deleted."""

    kind: TradeMutationKind
    trade_id: Optional[str] = None


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    return int(_env_float(key, default))


class AIChatConfig(BaseModel):
    """Tunables for context assembly and the model call.

    Defaults live in :mod:`constants`; :meth:`from_env` lets deployments
    override them through environment variables (usually the system `.env`).
    """

    model_id: str = Field(default=DEFAULT_CHAT_MODEL, description="Chat model id")
    base_url: Optional[str] = Field(
        default=None, description="Optional OpenAI-compatible base URL"
    )
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    max_reply_tokens: int = Field(default=DEFAULT_MAX_REPLY_TOKENS, gt=0)
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    context_token_ceiling: int = Field(default=DEFAULT_CONTEXT_TOKEN_CEILING, gt=0)
    request_token_ceiling: int = Field(default=DEFAULT_REQUEST_TOKEN_CEILING, gt=0)
    message_overhead_tokens: int = Field(
        default=DEFAULT_MESSAGE_OVERHEAD_TOKENS, ge=0
    )
    freshness_window_ms: int = Field(default=DEFAULT_FRESHNESS_WINDOW_MS, gt=0)
    poll_interval_seconds: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS, ge=0.0
    )
    poll_attempts: int = Field(default=DEFAULT_POLL_ATTEMPTS, ge=0)
    currency_symbol: str = Field(default=DEFAULT_CURRENCY_SYMBOL)

    @classmethod
    def from_env(cls) -> "AIChatConfig":
        return cls(
            model_id=os.getenv("AI_CHAT_MODEL_ID") or DEFAULT_CHAT_MODEL,
            base_url=os.getenv("AI_CHAT_BASE_URL") or None,
            temperature=_env_float("AI_CHAT_TEMPERATURE", DEFAULT_TEMPERATURE),
            max_reply_tokens=_env_int(
                "AI_CHAT_MAX_REPLY_TOKENS", DEFAULT_MAX_REPLY_TOKENS
            ),
            timeout_seconds=_env_float(
                "AI_CHAT_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS
            ),
            context_token_ceiling=_env_int(
                "AI_CHAT_CONTEXT_TOKEN_CEILING", DEFAULT_CONTEXT_TOKEN_CEILING
            ),
            request_token_ceiling=_env_int(
                "AI_CHAT_REQUEST_TOKEN_CEILING", DEFAULT_REQUEST_TOKEN_CEILING
            ),
            freshness_window_ms=_env_int(
                "AI_CHAT_CACHE_TTL_MS", DEFAULT_FRESHNESS_WINDOW_MS
            ),
            currency_symbol=os.getenv("AI_CHAT_CURRENCY_SYMBOL")
            or DEFAULT_CURRENCY_SYMBOL,
        )
