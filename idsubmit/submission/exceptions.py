class SubmissionError(Exception):
    """Base exception for all submission-related errors."""


class PreconditionError(SubmissionError):
    """Raised when a submission is rejected locally, before any network use."""


class MissingIdentityError(PreconditionError):
    """Raised when no subject id can be resolved from the session."""


class PayloadTooLargeError(PreconditionError):
    """Raised when the encoded documents together exceed the upload ceiling."""

    def __init__(self, message: str, *, byte_length: int, limit: int) -> None:
        super().__init__(message)
        self.byte_length = byte_length
        self.limit = limit


class UnsupportedFormatError(PreconditionError):
    """Raised when a document is neither PNG, JPEG nor PDF."""
