class TransportError(Exception):
    """Base exception for all transport-related errors."""


class TransientTransportError(TransportError):
    """Raised when retryable failures (5xx, network) exhausted the attempt budget."""

    def __init__(self, message: str, *, attempts: int, last_status: int | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_status = last_status


class TransportTimeoutError(TransientTransportError):
    """Raised when the last permitted attempt ran past its deadline."""


class FatalTransportError(TransportError):
    """Raised on a response that retrying cannot fix (4xx, unexpected redirect)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        code: str = "",
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.attempts = attempts


class TransportCancelledError(TransportError):
    """Raised when the caller cancelled the operation. Not a failure."""
