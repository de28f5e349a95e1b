"""Application-wide defaults."""

# Telegram message bodies (descriptions, comments) are cut to this many
# visible characters before sending.
DEFAULT_DESCRIPTION_MAX_LENGTH = 300

DEFAULT_BITRIX_TIMEOUT_SECONDS = 8.0

DEFAULT_LOG_LEVEL = "INFO"

ELLIPSIS = "…"
