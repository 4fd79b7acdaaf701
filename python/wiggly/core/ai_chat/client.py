import asyncio
from typing import Optional

from loguru import logger
from openai import AsyncOpenAI

from .errors import AIChatError, AIChatErrorType, classify_error
from .models import AIChatConfig

USER_AGENT = "Wiggly/1.0"


class ModelClient:
    """Issues chat completions against an OpenAI-compatible API.

    The call is bounded by ``config.timeout_seconds``; on expiry only the
    network call is cancelled. SDK-level retries are disabled: transient
    failures are reported to the caller rather than retried here.
    """

    def __init__(
        self,
        api_key: str,
        config: Optional[AIChatConfig] = None,
        *,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        if not api_key:
            raise AIChatError(AIChatErrorType.NO_CREDENTIAL)
        self._config = config or AIChatConfig()
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=self._config.base_url,
            max_retries=0,
            timeout=self._config.timeout_seconds,
            default_headers={"User-Agent": USER_AGENT},
        )

    async def complete(self, system_prompt: str, user_message: str) -> str:
        cfg = self._config
        try:
            completion = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=cfg.model_id,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_message},
                    ],
                    temperature=cfg.temperature,
                    max_tokens=cfg.max_reply_tokens,
                ),
                timeout=cfg.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.warning("AI completion timed out after {}s", cfg.timeout_seconds)
            raise AIChatError(AIChatErrorType.TIMEOUT) from e
        except AIChatError:
            raise
        except Exception as e:
            error = classify_error(e)
            logger.error("AI completion failed ({}): {}", error.error_type.value, e)
            raise error from e

        content = _first_message_content(completion)
        if not content:
            logger.error("AI completion returned no message content: {}", completion)
            raise AIChatError(AIChatErrorType.MALFORMED_RESPONSE)
        return content

    async def close(self) -> None:
        await self._client.close()


def _first_message_content(completion) -> Optional[str]:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if isinstance(content, str) and content.strip():
        return content
    return None
