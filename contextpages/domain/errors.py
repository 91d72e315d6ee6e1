class RateLimited(Exception):
    """Request was rate limited by the remote service. Includes suggested wait time in milliseconds."""

    def __init__(self, retry_after_ms: int, message: str = "Rate limited") -> None:
        super().__init__(message)
        self.retry_after_ms = retry_after_ms


class TemporaryFailure(Exception):
    """Transient remote or network failure. Retrying may succeed."""


class PermanentFailure(Exception):
    """Non-retriable failure due to invalid input, authorization issues or a malformed response."""


class NotFound(Exception):
    """Requested resource was not found."""


class PageStateError(RuntimeError):
    """Loader used out of sequence (read before advance, re-initialized, unreachable page)."""


class PageIndexError(IndexError):
    """Page requested beyond the next unresolved slot. Pages resolve strictly in order."""


class UnsupportedPageError(NotImplementedError):
    """Page is still being computed upstream. Never retried or waited on."""
