class ImagingError(Exception):
    """Base exception for image transcoding errors."""


class DecodeError(ImagingError):
    """Raised when raster bytes cannot be decoded (corrupt or truncated image)."""
