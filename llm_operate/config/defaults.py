"""Default values shared by the retry subsystem and the turn loops."""

# Retry policy (seconds)
DEFAULT_INITIAL_DELAY = 1.0
DEFAULT_MAX_DELAY = 32.0
DEFAULT_BACKOFF_FACTOR = 2.0
DEFAULT_MAX_RETRIES = 6
MAX_RETRIES_ABSOLUTE_LIMIT = 72

# Rate limits are not retried inline; callers should wait at least this long
RATE_LIMIT_SUGGESTED_DELAY = 60.0

# Turns
MAX_TURNS_DEFAULT = 12
MAX_TURNS_ABSOLUTE_LIMIT = 72

# Providers
PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"

DEFAULT_PROVIDER = PROVIDER_OPENAI

DEFAULT_MODELS = {
    PROVIDER_OPENAI: "gpt-4.1",
    PROVIDER_ANTHROPIC: "claude-sonnet-4-0",
}

KNOWN_MODELS = {
    PROVIDER_OPENAI: (
        "gpt-4.1",
        "gpt-4.1-mini",
        "gpt-4.1-nano",
        "gpt-4o",
        "gpt-4o-mini",
        "o3",
        "o4-mini",
    ),
    PROVIDER_ANTHROPIC: (
        "claude-sonnet-4-0",
        "claude-opus-4-0",
        "claude-3-7-sonnet-latest",
        "claude-3-5-haiku-latest",
    ),
}

MODEL_MATCH_WORDS = {
    PROVIDER_ANTHROPIC: ("anthropic", "claude", "haiku", "opus", "sonnet"),
    PROVIDER_OPENAI: ("openai", "gpt", "davinci"),
}

ANTHROPIC_MAX_TOKENS_DEFAULT = 4096

# Synthetic tool used to carry structured output on providers without a native format
STRUCTURED_OUTPUT_TOOL_NAME = "structured_output"
