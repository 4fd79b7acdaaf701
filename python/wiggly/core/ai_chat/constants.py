"""Default constants used across the ai_chat package.

Centralizes defaults so they can be imported from one place.
"""

DEFAULT_CHAT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_REPLY_TOKENS = 1000
DEFAULT_TIMEOUT_SECONDS = 120.0

# Token budget: the context ceiling stays below the request ceiling, which in
# turn stays far below the provider's hard limit to leave room for the reply.
DEFAULT_CONTEXT_TOKEN_CEILING = 7500
DEFAULT_REQUEST_TOKEN_CEILING = 8000
DEFAULT_MESSAGE_OVERHEAD_TOKENS = 200

# Sample sizes embedded into the system prompt
NORMAL_SAMPLE_LIMIT = 10
SIMPLIFIED_SAMPLE_LIMIT = 5
MIN_SAMPLE_LIMIT = 1

# Cache freshness and in-progress polling
DEFAULT_FRESHNESS_WINDOW_MS = 2 * 60 * 1000
DEFAULT_POLL_INTERVAL_SECONDS = 0.25
DEFAULT_POLL_ATTEMPTS = 20

# Backoff suggested to callers after a rate limit
RETRY_BASE_DELAY_SECONDS = 1.0
RETRY_MAX_DELAY_SECONDS = 30.0
RETRY_JITTER_SECONDS = 0.5

MIN_CREDENTIAL_LENGTH = 20
CREDENTIAL_ENV_KEY = "OPENAI_API_KEY"
SIMPLIFIED_MODE_ENV_KEY = "AI_SIMPLIFIED_MODE"

# Free-text labels are clipped before being embedded in the prompt
MAX_LABEL_CHARS = 120

DEFAULT_CURRENCY_SYMBOL = "₹"
ASSISTANT_NAME = "Wiggly"

# Topics for which a stale context would be visibly wrong
MUST_REFRESH_KEYWORDS = (
    "pnl",
    "profit",
    "total",
    "earn",
    "performance",
    "first",
    "oldest",
    "when did i start",
)

# Questions about "now" always bypass the cache
CACHE_BYPASS_KEYWORDS = (
    "refresh",
    "update",
    "latest",
    "newest",
    "current",
    "today",
    "now",
    "recent",
    "this week",
    "this month",
)

KNOWN_STRATEGIES = (
    "swing",
    "intraday",
    "scalping",
    "momentum",
    "trend",
    "breakout",
    "reversal",
    "options",
    "futures",
    "positional",
)

KNOWN_SYMBOLS = (
    "banknifty",
    "nifty",
    "sensex",
    "reliance",
    "tcs",
    "hdfc",
    "infy",
    "sbin",
    "icicibank",
    "axisbank",
    "tatasteel",
    "wipro",
    "hcltech",
)
