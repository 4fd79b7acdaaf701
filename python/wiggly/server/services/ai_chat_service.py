"""Process-local AIChatService singleton with override hooks.

This module provides a simple, synchronous locator for obtaining the default
AIChatService instance. It supports:

- Lazy initialization (no IO on import)
- Test overrides via set_ai_chat_service
- Cleanup via reset_ai_chat_service

Note: the service owns the context cache, so this is a per-process cache. In a
multi-process deployment each worker keeps its own.
"""

from __future__ import annotations

import threading
from typing import Optional

from wiggly.core.ai_chat import (
    AIChatConfig,
    AIChatService,
    EnvCredentialStore,
    SimplifiedModePreference,
)
from wiggly.server.db.repositories import SqlTradeStore, get_trade_repository
from wiggly.utils.env import get_system_env_path

_ai_chat_service: Optional[AIChatService] = None
_lock = threading.Lock()


def _create_default_service() -> AIChatService:
    env_path = get_system_env_path()
    return AIChatService(
        store=SqlTradeStore(get_trade_repository()),
        credentials=EnvCredentialStore(env_path),
        preference=SimplifiedModePreference(env_path),
        config=AIChatConfig.from_env(),
    )


def get_ai_chat_service() -> AIChatService:
    """Get (or create) the process-local AIChatService instance."""
    global _ai_chat_service
    if _ai_chat_service is None:
        with _lock:
            if _ai_chat_service is None:
                _ai_chat_service = _create_default_service()
    return _ai_chat_service


def set_ai_chat_service(service: AIChatService) -> None:
    """Override the default AIChatService (tests or custom wiring)."""
    global _ai_chat_service
    with _lock:
        _ai_chat_service = service


def reset_ai_chat_service() -> None:
    """Reset the singleton to an uninitialized state (tests)."""
    global _ai_chat_service
    with _lock:
        _ai_chat_service = None


async def shutdown_ai_chat_service() -> None:
    """Close the provider client of an initialized service and reset the singleton."""
    global _ai_chat_service
    with _lock:
        service, _ai_chat_service = _ai_chat_service, None
    if service is not None:
        await service.aclose()
