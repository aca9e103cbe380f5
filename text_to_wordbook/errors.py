class WordbookError(Exception):
    """Base error for the wordbook pipeline."""


class ConfigurationError(WordbookError):
    """Raised when required options are missing or invalid."""


class TransportError(WordbookError):
    """Raised when an HTTP call fails before a response is received."""

    def __init__(
        self,
        url: str,
        message: str,
        *,
        status_code: int = 0,
        timed_out: bool = False,
        cancelled: bool = False,
    ):
        self.url = url
        self.status_code = status_code
        self.timed_out = timed_out
        self.cancelled = cancelled
        super().__init__(f"Request to {url} failed: {message}")
