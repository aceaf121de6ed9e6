from dataclasses import dataclass
from pathlib import Path

from idsubmit.imaging.file_detection import RASTER_MIME_TYPES, guess_mime_type


@dataclass(frozen=True)
class SourceImage:
    """A candidate file as selected by the user. Never persisted."""

    data: bytes
    mime_type: str
    filename: str = "document"
    width: int | None = None
    height: int | None = None

    @property
    def byte_length(self) -> int:
        return len(self.data)

    @property
    def is_raster(self) -> bool:
        return self.mime_type.lower() in RASTER_MIME_TYPES

    @classmethod
    def from_path(cls, path: Path) -> "SourceImage":
        """Read a file and detect its type from the leading bytes."""
        data = path.read_bytes()
        return cls(data=data, mime_type=guess_mime_type(data, path.name), filename=path.name)


@dataclass(frozen=True)
class Enhancement:
    """Multipliers applied before encoding; 1.0 leaves a channel unchanged."""

    contrast: float = 1.0
    brightness: float = 1.0
    saturation: float = 1.0


# Darkens text and lightens the background for the backend's OCR.
OCR_ENHANCEMENT = Enhancement(contrast=1.15, brightness=1.02, saturation=0.9)


@dataclass(frozen=True)
class CompressionPass:
    """One rung of the compression ladder."""

    max_dimension: int
    quality: float
    enhancement: Enhancement = OCR_ENHANCEMENT

    def __post_init__(self) -> None:
        if self.max_dimension <= 0:
            raise ValueError(f"max_dimension must be positive, got {self.max_dimension}")
        if not 0.0 < self.quality <= 1.0:
            raise ValueError(f"quality must be in (0, 1], got {self.quality}")


COMPRESSION_LADDER: tuple[CompressionPass, ...] = (
    CompressionPass(max_dimension=2560, quality=0.90),
    CompressionPass(max_dimension=2048, quality=0.85),
    CompressionPass(max_dimension=1920, quality=0.75),
)


def validate_ladder(ladder: tuple[CompressionPass, ...]) -> tuple[CompressionPass, ...]:
    """Ensure the ladder is non-empty and never gets less aggressive."""
    if not ladder:
        raise ValueError("Compression ladder must contain at least one pass")
    for previous, current in zip(ladder, ladder[1:]):
        if current.max_dimension > previous.max_dimension:
            raise ValueError("Ladder max_dimension must be non-increasing")
        if current.quality > previous.quality:
            raise ValueError("Ladder quality must be non-increasing")
    return ladder


@dataclass(frozen=True)
class TranscodedImage:
    """Raw output of a single transcoder pass."""

    data: bytes
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True)
class CompressionResult:
    """The bytes that will actually be transmitted for one document side."""

    encoded_bytes: bytes
    pass_index_used: int | None
    format: str
    mime_type: str
    filename: str
    width: int | None = None
    height: int | None = None

    @property
    def byte_length(self) -> int:
        return len(self.encoded_bytes)

    @property
    def transcoded(self) -> bool:
        return self.pass_index_used is not None

    @classmethod
    def passthrough(cls, image: SourceImage, format_name: str) -> "CompressionResult":
        """Wrap untouched source bytes (non-raster input or decode fallback)."""
        return cls(
            encoded_bytes=image.data,
            pass_index_used=None,
            format=format_name,
            mime_type=image.mime_type,
            filename=image.filename,
            width=image.width,
            height=image.height,
        )
