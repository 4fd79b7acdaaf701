"""
AI chat API schemas for questions, preferences, credentials and cache events.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .base import SuccessResponse


class ChatMessageRequest(BaseModel):
    message: str = Field(
        ..., min_length=1, max_length=4000, description="User question about their trades"
    )


class ChatReplyData(BaseModel):
    reply: str = Field(..., description="Assistant reply (always present)")


ChatReplyResponse = SuccessResponse[ChatReplyData]


class SimplifiedModeData(BaseModel):
    enabled: bool = Field(..., description="Whether simplified mode is on")


SimplifiedModeResponse = SuccessResponse[SimplifiedModeData]


class CredentialUpdateRequest(BaseModel):
    api_key: str = Field(..., description="OpenAI API key")


class CredentialStatusData(BaseModel):
    configured: bool = Field(..., description="Whether a usable API key is stored")


CredentialStatusResponse = SuccessResponse[CredentialStatusData]


class PinnedPnlRequest(BaseModel):
    value: float = Field(..., description="Dashboard-reported total P&L to pin")


class CacheStatusData(BaseModel):
    has_snapshot: bool = Field(..., description="Whether a context snapshot is cached")
    built_at: Optional[str] = Field(None, description="Snapshot build time (ISO-8601)")
    age_ms: Optional[int] = Field(None, description="Snapshot age in milliseconds")
    is_loading: bool = Field(..., description="Whether a build is in progress")
    simplified_mode: bool = Field(..., description="Current simplified mode preference")
    total_record_count: Optional[int] = Field(None, description="Trades in the journal")
    sample_size: Optional[int] = Field(None, description="Trades embedded in the prompt")
    estimated_tokens: Optional[int] = Field(None, description="Estimated prompt tokens")


CacheStatusResponse = SuccessResponse[CacheStatusData]
