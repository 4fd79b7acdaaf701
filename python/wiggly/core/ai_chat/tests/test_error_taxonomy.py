import asyncio

import httpx
import openai
import pytest

from wiggly.core.ai_chat.errors import (
    AIChatError,
    AIChatErrorType,
    calculate_retry_delay,
    classify_error,
    format_error_message,
)

URL = "https://api.openai.com/v1/chat/completions"


def _request() -> httpx.Request:
    return httpx.Request("POST", URL)


def _response(status: int, headers=None) -> httpx.Response:
    return httpx.Response(status, headers=headers, request=_request())


def test_authentication_error_is_invalid_credential():
    exc = openai.AuthenticationError("bad key", response=_response(401), body=None)
    assert classify_error(exc).error_type == AIChatErrorType.INVALID_CREDENTIAL


def test_permission_denied_is_invalid_credential():
    exc = openai.PermissionDeniedError("denied", response=_response(403), body=None)
    assert classify_error(exc).error_type == AIChatErrorType.INVALID_CREDENTIAL


def test_rate_limit_uses_retry_after_header():
    exc = openai.RateLimitError(
        "Rate limit reached", response=_response(429, {"retry-after": "7"}), body=None
    )
    error = classify_error(exc)
    assert error.error_type == AIChatErrorType.RATE_LIMITED
    assert error.retry_after == 7.0
    assert error.is_transient


def test_rate_limit_without_header_suggests_backoff():
    exc = openai.RateLimitError("Rate limit reached", response=_response(429), body=None)
    error = classify_error(exc)
    assert error.error_type == AIChatErrorType.RATE_LIMITED
    assert 1.0 <= error.retry_after <= 1.5


def test_insufficient_quota_is_quota_exceeded():
    exc = openai.RateLimitError(
        "You exceeded your current plan",
        response=_response(429),
        body={"code": "insufficient_quota", "message": "You exceeded your current plan"},
    )
    error = classify_error(exc)
    assert error.error_type == AIChatErrorType.QUOTA_EXCEEDED
    assert not error.is_transient


def test_context_length_bad_request():
    exc = openai.BadRequestError(
        "This model's maximum context length is 8192 tokens",
        response=_response(400),
        body={"code": "context_length_exceeded"},
    )
    assert classify_error(exc).error_type == AIChatErrorType.CONTEXT_LENGTH


def test_connection_and_timeout_errors():
    assert (
        classify_error(openai.APIConnectionError(request=_request())).error_type
        == AIChatErrorType.NETWORK_ERROR
    )
    assert (
        classify_error(openai.APITimeoutError(request=_request())).error_type
        == AIChatErrorType.TIMEOUT
    )
    assert classify_error(asyncio.TimeoutError()).error_type == AIChatErrorType.TIMEOUT


def test_server_errors_are_network_errors():
    exc = openai.InternalServerError("upstream failed", response=_response(503), body=None)
    assert classify_error(exc).error_type == AIChatErrorType.NETWORK_ERROR


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Error 429: Too Many Requests", AIChatErrorType.RATE_LIMITED),
        ("insufficient_quota", AIChatErrorType.QUOTA_EXCEEDED),
        ("maximum context length exceeded", AIChatErrorType.CONTEXT_LENGTH),
        ("request timed out", AIChatErrorType.TIMEOUT),
        ("socket hang up", AIChatErrorType.NETWORK_ERROR),
        ("401 Unauthorized", AIChatErrorType.INVALID_CREDENTIAL),
        ("something odd", AIChatErrorType.UNKNOWN),
    ],
)
def test_plain_exceptions_are_classified_by_message(text, expected):
    assert classify_error(RuntimeError(text)).error_type == expected


def test_classified_errors_pass_through():
    error = AIChatError(AIChatErrorType.STORAGE_UNAVAILABLE)
    assert classify_error(error) is error


def test_retry_delay_grows_and_is_capped():
    assert 1.0 <= calculate_retry_delay(0) <= 1.5
    assert 4.0 <= calculate_retry_delay(2) <= 4.5
    assert calculate_retry_delay(10) == 30.0


def test_error_message_lists_headline_and_suggestions():
    text = format_error_message(AIChatError(AIChatErrorType.STORAGE_UNAVAILABLE))
    assert text.startswith("I encountered an error: I could not load your trade data.")
    assert "Here are some suggestions:\n- Try again in a moment" in text


def test_error_message_mentions_wait_time():
    error = AIChatError(AIChatErrorType.RATE_LIMITED, retry_after=2.6)
    text = format_error_message(error)
    assert "OpenAI rate limit exceeded" in text
    assert "- Wait about 3 seconds before retrying" in text


def test_tiny_wait_time_rounds_up_to_one_second():
    error = AIChatError(AIChatErrorType.RATE_LIMITED, retry_after=0.2)
    assert "Wait about 1 seconds" in format_error_message(error)


def test_every_error_type_has_a_message():
    for error_type in AIChatErrorType:
        error = AIChatError(error_type)
        assert error.message
        assert "I encountered an error" in format_error_message(error)
