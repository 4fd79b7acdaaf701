"""Error taxonomy for the AI chat path and its user-facing messages.

Every failure the chat path can hit is expressed as an :class:`AIChatError`
carrying an :class:`AIChatErrorType`. The chat service converts these into a
single reply text; nothing here is meant to reach the UI as an exception.
"""

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

import openai

from .constants import (
    RETRY_BASE_DELAY_SECONDS,
    RETRY_JITTER_SECONDS,
    RETRY_MAX_DELAY_SECONDS,
)


class AIChatErrorType(str, Enum):
    NO_CREDENTIAL = "NO_CREDENTIAL"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    BUDGET_EXCEEDED_AFTER_RETRY = "BUDGET_EXCEEDED_AFTER_RETRY"
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    NETWORK_ERROR = "NETWORK_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    CONTEXT_LENGTH = "CONTEXT_LENGTH"
    UNKNOWN = "UNKNOWN"


TRANSIENT_ERROR_TYPES = frozenset(
    {
        AIChatErrorType.RATE_LIMITED,
        AIChatErrorType.NETWORK_ERROR,
        AIChatErrorType.TIMEOUT,
    }
)


class AIChatError(Exception):
    """A classified failure on the AI chat path."""

    def __init__(
        self,
        error_type: AIChatErrorType,
        message: Optional[str] = None,
        *,
        retry_after: Optional[float] = None,
    ) -> None:
        self.error_type = error_type
        self.message = message or ERROR_DETAILS[error_type].headline
        self.retry_after = retry_after
        super().__init__(self.message)

    @property
    def is_transient(self) -> bool:
        return self.error_type in TRANSIENT_ERROR_TYPES

    def __repr__(self) -> str:
        return (
            f"AIChatError({self.error_type.value}, {self.message!r}, "
            f"retry_after={self.retry_after})"
        )


@dataclass(frozen=True)
class ErrorDetails:
    headline: str
    suggestions: List[str]


ERROR_DETAILS: Dict[AIChatErrorType, ErrorDetails] = {
    AIChatErrorType.NO_CREDENTIAL: ErrorDetails(
        "No OpenAI API key is configured",
        ["Add your OpenAI API key in the AI assistant settings"],
    ),
    AIChatErrorType.INVALID_CREDENTIAL: ErrorDetails(
        "Authentication error with OpenAI",
        [
            "Check if your API key is valid",
            "Try adding your API key again",
            "Your API key may have expired or been revoked",
        ],
    ),
    AIChatErrorType.STORAGE_UNAVAILABLE: ErrorDetails(
        "I could not load your trade data",
        [
            "Try again in a moment",
            "Check that your journal loads on the dashboard",
        ],
    ),
    AIChatErrorType.BUDGET_EXCEEDED_AFTER_RETRY: ErrorDetails(
        "Your trading history is too large to analyze in full",
        [
            "Ask about specific recent trades",
            "Ask more focused questions about specific aspects",
        ],
    ),
    AIChatErrorType.TIMEOUT: ErrorDetails(
        "The AI service took too long to respond",
        [
            "Try again in a moment",
            "Ask a shorter, more focused question",
        ],
    ),
    AIChatErrorType.RATE_LIMITED: ErrorDetails(
        "OpenAI rate limit exceeded",
        [
            "Wait a few minutes before trying again",
            "Try using simplified mode",
            "Ask shorter, more focused questions",
        ],
    ),
    AIChatErrorType.QUOTA_EXCEEDED: ErrorDetails(
        "Your OpenAI quota has been used up",
        [
            "Check your OpenAI plan and billing details",
            "Add a key from an account with remaining credit",
        ],
    ),
    AIChatErrorType.NETWORK_ERROR: ErrorDetails(
        "Network error connecting to AI service",
        [
            "Check your internet connection",
            "Try again in a moment",
            "Refresh the page if problem persists",
        ],
    ),
    AIChatErrorType.MALFORMED_RESPONSE: ErrorDetails(
        "The AI service returned an empty response",
        [
            "Try again with a simpler query",
            "Rephrase your question",
        ],
    ),
    AIChatErrorType.CONTEXT_LENGTH: ErrorDetails(
        "Your trading history is too large for analysis",
        [
            "Enable simplified mode to use less context data",
            "Ask about specific recent trades",
            "Ask more focused questions about specific aspects",
        ],
    ),
    AIChatErrorType.UNKNOWN: ErrorDetails(
        "Unexpected error occurred",
        [
            "Try again with a simpler query",
            "Refresh the page",
            "Clear chat history and start fresh",
        ],
    ),
}


def calculate_retry_delay(attempt: int) -> float:
    """Exponential backoff with jitter, capped at the maximum delay."""
    delay = RETRY_BASE_DELAY_SECONDS * (2 ** max(attempt, 0))
    delay += random.uniform(0, RETRY_JITTER_SECONDS)
    return min(RETRY_MAX_DELAY_SECONDS, delay)


def _retry_after_seconds(exc: Exception) -> Optional[float]:
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return max(0.0, float(raw))
    except (TypeError, ValueError):
        return None


def _classify_message(text: str) -> AIChatErrorType:
    text = text.lower()
    if "insufficient_quota" in text or "quota" in text:
        return AIChatErrorType.QUOTA_EXCEEDED
    if "rate limit" in text or "too many requests" in text or "429" in text:
        return AIChatErrorType.RATE_LIMITED
    if (
        "maximum context length" in text
        or "context_length_exceeded" in text
        or "token limit" in text
    ):
        return AIChatErrorType.CONTEXT_LENGTH
    if "timeout" in text or "timed out" in text:
        return AIChatErrorType.TIMEOUT
    if (
        "network" in text
        or "failed to fetch" in text
        or "connection" in text
        or "econnreset" in text
        or "socket hang up" in text
    ):
        return AIChatErrorType.NETWORK_ERROR
    if (
        "401" in text
        or "unauthorized" in text
        or "invalid api key" in text
        or "incorrect api key" in text
    ):
        return AIChatErrorType.INVALID_CREDENTIAL
    return AIChatErrorType.UNKNOWN


def classify_error(exc: BaseException) -> AIChatError:
    """Map any exception raised around the provider call onto the taxonomy."""
    if isinstance(exc, AIChatError):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, openai.APITimeoutError)):
        return AIChatError(AIChatErrorType.TIMEOUT)
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return AIChatError(AIChatErrorType.INVALID_CREDENTIAL, str(exc) or None)
    if isinstance(exc, openai.RateLimitError):
        if getattr(exc, "code", None) == "insufficient_quota" or "quota" in str(exc):
            return AIChatError(AIChatErrorType.QUOTA_EXCEEDED)
        retry_after = _retry_after_seconds(exc)
        if retry_after is None:
            retry_after = calculate_retry_delay(0)
        return AIChatError(AIChatErrorType.RATE_LIMITED, retry_after=retry_after)
    if isinstance(exc, openai.APIConnectionError):
        return AIChatError(AIChatErrorType.NETWORK_ERROR)
    if isinstance(exc, openai.BadRequestError):
        if getattr(exc, "code", None) == "context_length_exceeded":
            return AIChatError(AIChatErrorType.CONTEXT_LENGTH)
    if isinstance(exc, openai.APIStatusError) and exc.status_code >= 500:
        return AIChatError(AIChatErrorType.NETWORK_ERROR)

    error_type = _classify_message(str(exc))
    if error_type == AIChatErrorType.RATE_LIMITED:
        return AIChatError(error_type, retry_after=calculate_retry_delay(0))
    return AIChatError(error_type)


def format_error_message(error: AIChatError) -> str:
    """Render a chat reply explaining ``error`` with concrete suggestions."""
    details = ERROR_DETAILS.get(error.error_type, ERROR_DETAILS[AIChatErrorType.UNKNOWN])
    suggestions = list(details.suggestions)
    if error.retry_after:
        seconds = max(1, int(round(error.retry_after)))
        suggestions.insert(0, f"Wait about {seconds} seconds before retrying")
    bullet_list = "\n- ".join(suggestions)
    return (
        f"I encountered an error: {details.headline}.\n\n"
        f"Here are some suggestions:\n- {bullet_list}\n\n"
        "Feel free to try again with a different approach."
    )
