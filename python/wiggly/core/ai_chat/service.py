"""Chat orchestration for the trade-journal assistant.

``AIChatService.chat`` is the single entry point used by the API layer. It
always returns exactly one reply text: credential problems, storage failures
and provider errors are turned into explanatory messages instead of being
raised.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from loguru import logger

from .builder import ContextBuilder
from .cache import ContextCache, is_must_refresh_topic
from .client import ModelClient
from .errors import AIChatError, AIChatErrorType, format_error_message
from .intent import QueryIntentExtractor
from .interfaces import BaseCredentialStore, BaseTradeStore
from .models import AIChatConfig, ContextSnapshot, TradeMutationEvent
from .preferences import SimplifiedModePreference
from .tokens import TokenBudget

NO_CREDENTIAL_REPLY = (
    "Please add your OpenAI API key to use this feature. You can add it in the "
    "AI assistant settings."
)

ClientFactory = Callable[[str], ModelClient]


class AIChatService:
    def __init__(
        self,
        store: BaseTradeStore,
        credentials: BaseCredentialStore,
        preference: Optional[SimplifiedModePreference] = None,
        config: Optional[AIChatConfig] = None,
        *,
        cache: Optional[ContextCache] = None,
        client_factory: Optional[ClientFactory] = None,
        extractor: Optional[QueryIntentExtractor] = None,
    ) -> None:
        self.config = config or AIChatConfig()
        self.credentials = credentials
        self.preference = preference or SimplifiedModePreference()
        extractor = extractor or QueryIntentExtractor()
        self.cache = cache or ContextCache(
            self.config.freshness_window_ms, extractor=extractor
        )
        self.builder = ContextBuilder(
            store, self.cache, self.preference, self.config, extractor=extractor
        )
        self.budget = TokenBudget(
            self.config.request_token_ceiling, self.config.message_overhead_tokens
        )
        self._client_factory = client_factory or (
            lambda api_key: ModelClient(api_key, self.config)
        )
        self._client: Optional[ModelClient] = None
        self._client_key: Optional[str] = None

    async def chat(self, message: str) -> str:
        logger.info("Starting AI chat with message of {} chars", len(message or ""))
        try:
            return await self._chat(message)
        except AIChatError as e:
            logger.warning("AI chat failed: {}", e.error_type.value)
            return format_error_message(e)
        except Exception as e:
            logger.exception("Unexpected error in AI chat: {}", e)
            return format_error_message(AIChatError(AIChatErrorType.UNKNOWN))

    async def _chat(self, message: str) -> str:
        api_key = self.credentials.get_credential()
        if not api_key:
            return NO_CREDENTIAL_REPLY

        if is_must_refresh_topic(message):
            logger.info("Must-refresh topic detected - invalidating AI context cache")
            self.cache.invalidate()

        snapshot = await self.builder.build(message)

        if not self.budget.fits(snapshot.system_prompt, message):
            logger.warning("Message likely exceeds token limit - forcing simplified mode")
            self.preference.set(True)
            self.cache.invalidate()
            snapshot = await self.builder.build(message)
            if not self.budget.fits(snapshot.system_prompt, message):
                snapshot = self._smallest_context(snapshot, message)

        client = self._get_client(api_key)
        return await client.complete(snapshot.system_prompt, message)

    def _smallest_context(self, snapshot: ContextSnapshot, message: str) -> ContextSnapshot:
        logger.warning(
            "{}: proceeding with the smallest available context",
            AIChatErrorType.BUDGET_EXCEEDED_AFTER_RETRY.value,
        )
        return self.builder.shrink_to_fit(
            snapshot, self.budget.remaining_for_prompt(message)
        )

    def _get_client(self, api_key: str) -> ModelClient:
        if self._client is None or self._client_key != api_key:
            self._client = self._client_factory(api_key)
            self._client_key = api_key
        return self._client

    # ------------------------------------------------------------------
    # Preference, cache and event surface used by the API layer

    def get_simplified_mode(self) -> bool:
        return self.preference.get()

    def set_simplified_mode(self, value: bool) -> None:
        if self.preference.get() != bool(value):
            self.cache.invalidate()
        self.preference.set(value)

    def invalidate_context(self) -> None:
        self.cache.invalidate()

    def on_trade_mutation(self, event: TradeMutationEvent) -> None:
        logger.info(
            "Trade {} (id={}) - invalidating AI context cache",
            event.kind.value,
            event.trade_id,
        )
        self.cache.invalidate()

    def pin_total_pnl(self, value: float) -> None:
        """Pin a dashboard-reported total P&L into every prompt."""
        self.builder.pinned_total_pnl = float(value)
        self.cache.invalidate()

    def clear_pinned_total_pnl(self) -> None:
        self.builder.pinned_total_pnl = None
        self.cache.invalidate()

    def cache_status(self) -> Dict[str, Any]:
        snapshot = self.cache.read()
        return {
            "has_snapshot": snapshot is not None,
            "built_at": snapshot.built_at if snapshot else None,
            "age_ms": self.cache.age_ms(),
            "is_loading": self.cache.is_loading,
            "simplified_mode": self.preference.get(),
            "total_record_count": snapshot.total_record_count if snapshot else None,
            "sample_size": len(snapshot.sample_records) if snapshot else None,
            "estimated_tokens": snapshot.estimated_tokens if snapshot else None,
        }

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._client_key = None
