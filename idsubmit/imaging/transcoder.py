"""Deterministic resize, OCR enhancement and JPEG re-encoding with Pillow.

Processing flow for raster input:
1. Decode and fully load the image (truncated data fails here).
2. Apply EXIF orientation so phone photos are upright.
3. Flatten transparency onto white and convert to RGB.
4. Downscale so the longest side fits the pass, never upscaling.
5. Apply contrast, brightness and saturation multipliers.
6. Encode as JPEG at the pass quality, without metadata.
"""

import io

from PIL import Image, ImageEnhance, ImageOps, UnidentifiedImageError

from idsubmit.imaging.exceptions import DecodeError
from idsubmit.imaging.models import CompressionPass, Enhancement, SourceImage, TranscodedImage


class ImageTranscoder:
    """Pure function of (image, pass) -> encoded JPEG bytes."""

    OUTPUT_FORMAT = "JPEG"

    def transcode(self, image: SourceImage, compression_pass: CompressionPass) -> TranscodedImage:
        if not image.is_raster:
            return TranscodedImage(data=image.data, width=image.width, height=image.height)

        frame = self._decode(image.data)
        frame = self._resize(frame, compression_pass.max_dimension)
        frame = self._enhance(frame, compression_pass.enhancement)

        buffer = io.BytesIO()
        frame.save(
            buffer,
            format=self.OUTPUT_FORMAT,
            quality=round(compression_pass.quality * 100),
        )
        return TranscodedImage(data=buffer.getvalue(), width=frame.width, height=frame.height)

    @staticmethod
    def _decode(data: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(data)) as opened:
                opened.load()
                frame = ImageOps.exif_transpose(opened)
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            ValueError,
        ) as exc:
            raise DecodeError(f"Cannot decode image: {exc}") from exc

        if frame.mode in ("RGBA", "LA") or (frame.mode == "P" and "transparency" in frame.info):
            rgba = frame.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        if frame.mode != "RGB":
            return frame.convert("RGB")
        return frame

    @staticmethod
    def _resize(frame: Image.Image, max_dimension: int) -> Image.Image:
        width, height = frame.size
        longest = max(width, height)
        if longest <= max_dimension:
            return frame
        scale = max_dimension / longest
        target = (
            max(1, min(max_dimension, round(width * scale))),
            max(1, min(max_dimension, round(height * scale))),
        )
        return frame.resize(target, Image.Resampling.LANCZOS)

    @staticmethod
    def _enhance(frame: Image.Image, enhancement: Enhancement) -> Image.Image:
        if enhancement.contrast != 1.0:
            frame = ImageEnhance.Contrast(frame).enhance(enhancement.contrast)
        if enhancement.brightness != 1.0:
            frame = ImageEnhance.Brightness(frame).enhance(enhancement.brightness)
        if enhancement.saturation != 1.0:
            frame = ImageEnhance.Color(frame).enhance(enhancement.saturation)
        return frame
