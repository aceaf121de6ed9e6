from idsubmit.imaging.file_detection import format_for_mime
from idsubmit.imaging.models import (
    COMPRESSION_LADDER,
    CompressionPass,
    CompressionResult,
    SourceImage,
    TranscodedImage,
    validate_ladder,
)
from idsubmit.imaging.transcoder import ImageTranscoder
from idsubmit.logging.logger import Log


def _jpeg_filename(filename: str) -> str:
    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    return f"{stem or 'document'}.jpg"


class CompressionPlanner:
    """Drives the transcoder down the ladder until the byte budget is met.

    Best effort only: when no pass fits, the most aggressive pass is returned
    and callers must not assume the result is under budget.
    """

    def __init__(
        self,
        transcoder: ImageTranscoder | None = None,
        ladder: tuple[CompressionPass, ...] = COMPRESSION_LADDER,
    ) -> None:
        self._transcoder = transcoder if transcoder is not None else ImageTranscoder()
        self._ladder = validate_ladder(ladder)

    @property
    def ladder(self) -> tuple[CompressionPass, ...]:
        return self._ladder

    def plan(self, image: SourceImage, target_size_bytes: int) -> CompressionResult:
        """Return the first ladder output whose size is <= target_size_bytes.

        Raises:
            DecodeError: if the raster input cannot be decoded.
        """
        if not image.is_raster:
            Log.debug(f"Skipping compression for non-raster {image.mime_type}")
            return CompressionResult.passthrough(image, format_for_mime(image.mime_type))

        last_index = len(self._ladder) - 1
        for index, compression_pass in enumerate(self._ladder):
            output = self._transcoder.transcode(image, compression_pass)
            Log.debug(
                f"Compression pass {index}: {len(output.data)} bytes",
                max_dimension=compression_pass.max_dimension,
                quality=compression_pass.quality,
            )
            if len(output.data) <= target_size_bytes:
                return self._build_result(image, output, index)
            if index == last_index:
                Log.warning(
                    f"No compression pass met the {target_size_bytes} byte target, "
                    f"using the most aggressive pass"
                )
                return self._build_result(image, output, index)
        raise ValueError("Compression ladder is empty")

    @staticmethod
    def _build_result(
        image: SourceImage,
        output: TranscodedImage,
        index: int,
    ) -> CompressionResult:
        Log.info(
            f"Compressed {image.byte_length} -> {len(output.data)} bytes with pass {index}"
        )
        return CompressionResult(
            encoded_bytes=output.data,
            pass_index_used=index,
            format="jpeg",
            mime_type="image/jpeg",
            filename=_jpeg_filename(image.filename),
            width=output.width,
            height=output.height,
        )
