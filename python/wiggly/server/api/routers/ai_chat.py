"""AI Chat API Router

Endpoints for asking the trade-journal assistant questions and managing its
simplified mode, API key, context cache and trade-mutation notifications.
"""

from fastapi import APIRouter

from wiggly.core.ai_chat import TradeMutationEvent
from wiggly.server.api.exceptions import APIException
from wiggly.server.api.schemas.ai_chat import (
    CacheStatusData,
    CacheStatusResponse,
    ChatMessageRequest,
    ChatReplyData,
    ChatReplyResponse,
    CredentialStatusData,
    CredentialStatusResponse,
    CredentialUpdateRequest,
    PinnedPnlRequest,
    SimplifiedModeData,
    SimplifiedModeResponse,
)
from wiggly.server.api.schemas.base import SuccessResponse
from wiggly.server.services.ai_chat_service import get_ai_chat_service
from wiggly.utils.ts import timestamp_ms_to_iso


def create_ai_chat_router() -> APIRouter:
    router = APIRouter(
        prefix="/ai-chat",
        tags=["ai-chat"],
        responses={404: {"description": "Not found"}},
    )

    @router.post(
        "/messages",
        response_model=ChatReplyResponse,
        summary="Ask the assistant a question",
        description="Answer a question about the user's trades. Always returns a reply; "
        "failures are explained in the reply text.",
    )
    async def send_message(payload: ChatMessageRequest) -> ChatReplyResponse:
        service = get_ai_chat_service()
        reply = await service.chat(payload.message)
        return SuccessResponse.create(data=ChatReplyData(reply=reply), msg="Reply ready")

    @router.get(
        "/preferences/simplified-mode",
        response_model=SimplifiedModeResponse,
        summary="Get simplified mode",
    )
    async def get_simplified_mode() -> SimplifiedModeResponse:
        service = get_ai_chat_service()
        return SuccessResponse.create(
            data=SimplifiedModeData(enabled=service.get_simplified_mode())
        )

    @router.put(
        "/preferences/simplified-mode",
        response_model=SimplifiedModeResponse,
        summary="Set simplified mode",
        description="Turning simplified mode on or off invalidates the cached context.",
    )
    async def set_simplified_mode(payload: SimplifiedModeData) -> SimplifiedModeResponse:
        try:
            service = get_ai_chat_service()
            service.set_simplified_mode(payload.enabled)
            return SuccessResponse.create(
                data=SimplifiedModeData(enabled=service.get_simplified_mode()),
                msg="Simplified mode updated",
            )
        except Exception as e:  # noqa: BLE001
            raise APIException(500, f"Failed to update simplified mode: {e}")

    @router.get(
        "/credential",
        response_model=CredentialStatusResponse,
        summary="Check whether an API key is configured",
    )
    async def get_credential_status() -> CredentialStatusResponse:
        service = get_ai_chat_service()
        configured = service.credentials.get_credential() is not None
        return SuccessResponse.create(data=CredentialStatusData(configured=configured))

    @router.put(
        "/credential",
        response_model=CredentialStatusResponse,
        summary="Store the OpenAI API key",
    )
    async def set_credential(payload: CredentialUpdateRequest) -> CredentialStatusResponse:
        service = get_ai_chat_service()
        if not service.credentials.set_credential(payload.api_key):
            raise APIException(400, "Invalid API key")
        return SuccessResponse.create(
            data=CredentialStatusData(configured=True), msg="API key saved"
        )

    @router.delete(
        "/credential",
        response_model=CredentialStatusResponse,
        summary="Remove the stored API key",
    )
    async def clear_credential() -> CredentialStatusResponse:
        service = get_ai_chat_service()
        service.credentials.clear_credential()
        return SuccessResponse.create(
            data=CredentialStatusData(configured=False), msg="API key removed"
        )

    @router.post(
        "/events/trades",
        response_model=SuccessResponse,
        summary="Notify a trade mutation",
        description="Call after a trade is added, updated or deleted so the next "
        "question sees fresh data.",
    )
    async def notify_trade_mutation(event: TradeMutationEvent) -> SuccessResponse:
        get_ai_chat_service().on_trade_mutation(event)
        return SuccessResponse.create(msg="Context invalidated")

    @router.post(
        "/cache/invalidate",
        response_model=SuccessResponse,
        summary="Invalidate the cached context",
    )
    async def invalidate_cache() -> SuccessResponse:
        get_ai_chat_service().invalidate_context()
        return SuccessResponse.create(msg="Context invalidated")

    @router.get(
        "/cache",
        response_model=CacheStatusResponse,
        summary="Inspect the cached context",
    )
    async def get_cache_status() -> CacheStatusResponse:
        status = get_ai_chat_service().cache_status()
        status["built_at"] = timestamp_ms_to_iso(status["built_at"])
        return SuccessResponse.create(data=CacheStatusData(**status))

    @router.put(
        "/pinned-pnl",
        response_model=SuccessResponse,
        summary="Pin the dashboard total P&L",
        description="Embed a dashboard-reported total P&L in every prompt.",
    )
    async def pin_total_pnl(payload: PinnedPnlRequest) -> SuccessResponse:
        get_ai_chat_service().pin_total_pnl(payload.value)
        return SuccessResponse.create(msg="Total P&L pinned")

    @router.delete(
        "/pinned-pnl",
        response_model=SuccessResponse,
        summary="Remove the pinned total P&L",
    )
    async def clear_pinned_pnl() -> SuccessResponse:
        get_ai_chat_service().clear_pinned_total_pnl()
        return SuccessResponse.create(msg="Pinned total P&L removed")

    return router
