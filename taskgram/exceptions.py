"""Custom exceptions for Taskgram."""


class TaskgramError(Exception):
    """Base exception for Taskgram."""


class ConfigurationError(TaskgramError):
    """Configuration-related errors."""


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""


class BitrixError(TaskgramError):
    """Bitrix24 REST API-related errors."""


class BitrixApiError(BitrixError):
    """Bitrix24 returned an error or could not be reached."""

    def __init__(
        self, message: str, status: int = 0, method: str = "", code: str = ""
    ) -> None:
        super().__init__(message)
        self.status = status
        self.method = method
        self.code = code


class BitrixTimeoutError(BitrixError):
    """Bitrix24 request timed out."""
