class NormalizationError(Exception):
    """Raised when a backend payload cannot be normalized."""


class MalformedResponseError(NormalizationError):
    """Raised when the payload is not a JSON object at all."""
