"""Token estimation and budget checks for assembled prompts.

The estimate is a gate, not a provider-exact count. It depends on character
length only, so a longer text never estimates lower than a shorter one, and it
assumes fewer characters per token than the ~4 that GPT tokenizers average on
English so that JSON punctuation and currency glyphs are not undercounted.
"""

import math
from typing import Iterable, Optional

from .constants import (
    DEFAULT_MESSAGE_OVERHEAD_TOKENS,
    DEFAULT_REQUEST_TOKEN_CEILING,
)

CHARS_PER_TOKEN = 3.5


def estimate_tokens(text: Optional[str]) -> int:
    """Return a conservative token estimate for ``text``."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class TokenBudget:
    """Checks whether a system prompt plus messages fit under a ceiling."""

    def __init__(
        self,
        ceiling: int = DEFAULT_REQUEST_TOKEN_CEILING,
        overhead: int = DEFAULT_MESSAGE_OVERHEAD_TOKENS,
    ) -> None:
        self.ceiling = ceiling
        self.overhead = overhead

    def count(self, system_prompt: str, messages: Iterable[str] = ()) -> int:
        total = estimate_tokens(system_prompt)
        for message in messages:
            total += estimate_tokens(message)
        return total + self.overhead

    def fits(self, system_prompt: str, *messages: str) -> bool:
        return self.count(system_prompt, messages) < self.ceiling

    def remaining_for_prompt(self, *messages: str) -> int:
        """Largest system-prompt estimate for which :meth:`fits` still holds."""
        used = sum(estimate_tokens(m) for m in messages) + self.overhead
        return max(0, self.ceiling - used - 1)
