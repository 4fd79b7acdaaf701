"""AI chat context assembly, caching and orchestration."""

from .builder import ContextBuilder
from .cache import ContextCache, is_cache_bypass_query, is_must_refresh_topic
from .client import ModelClient
from .credentials import EnvCredentialStore, InMemoryCredentialStore
from .errors import AIChatError, AIChatErrorType, classify_error, format_error_message
from .in_memory import InMemoryTradeStore
from .intent import QueryIntentExtractor, extract_query_intent
from .interfaces import BaseCredentialStore, BaseTradeStore
from .models import (
    AIChatConfig,
    ContextSnapshot,
    OrderBy,
    QueryIntent,
    TradeMutationEvent,
    TradeMutationKind,
    TradeRecord,
    TradeStats,
    TradeSummary,
    TradeType,
)
from .preferences import SimplifiedModePreference
from .service import AIChatService
from .tokens import TokenBudget, estimate_tokens

__all__ = [
    "AIChatService",
    "ContextBuilder",
    "ContextCache",
    "ModelClient",
    "QueryIntentExtractor",
    "extract_query_intent",
    "is_must_refresh_topic",
    "is_cache_bypass_query",
    "estimate_tokens",
    "TokenBudget",
    "AIChatError",
    "AIChatErrorType",
    "classify_error",
    "format_error_message",
    "BaseTradeStore",
    "BaseCredentialStore",
    "InMemoryTradeStore",
    "EnvCredentialStore",
    "InMemoryCredentialStore",
    "SimplifiedModePreference",
    "AIChatConfig",
    "ContextSnapshot",
    "OrderBy",
    "QueryIntent",
    "TradeMutationEvent",
    "TradeMutationKind",
    "TradeRecord",
    "TradeStats",
    "TradeSummary",
    "TradeType",
]
