from unittest.mock import MagicMock

import pytest

from idsubmit.imaging.exceptions import DecodeError
from idsubmit.imaging.models import (
    COMPRESSION_LADDER,
    CompressionPass,
    SourceImage,
    TranscodedImage,
)
from idsubmit.imaging.planner import CompressionPlanner
from idsubmit.imaging.transcoder import ImageTranscoder


def _jpeg(data: bytes) -> SourceImage:
    return SourceImage(data=data, mime_type="image/jpeg", filename="front.jpeg")


def _make_transcoder(sizes: list[int]) -> MagicMock:
    transcoder = MagicMock(spec=ImageTranscoder)
    transcoder.transcode.side_effect = [
        TranscodedImage(data=b"x" * size, width=10, height=10) for size in sizes
    ]
    return transcoder


class TestPlanLadderWalk:
    def test_stops_at_first_pass_under_target(self) -> None:
        transcoder = _make_transcoder([900, 400, 100])
        result = CompressionPlanner(transcoder).plan(_jpeg(b"raw"), target_size_bytes=500)
        assert result.pass_index_used == 1
        assert result.byte_length == 400
        assert transcoder.transcode.call_count == 2

    def test_first_pass_fits(self) -> None:
        transcoder = _make_transcoder([100, 50, 10])
        result = CompressionPlanner(transcoder).plan(_jpeg(b"raw"), target_size_bytes=500)
        assert result.pass_index_used == 0
        assert transcoder.transcode.call_count == 1

    def test_target_is_inclusive(self) -> None:
        transcoder = _make_transcoder([500])
        result = CompressionPlanner(transcoder).plan(_jpeg(b"raw"), target_size_bytes=500)
        assert result.pass_index_used == 0

    def test_best_effort_returns_last_pass(self) -> None:
        transcoder = _make_transcoder([900, 800, 700])
        result = CompressionPlanner(transcoder).plan(_jpeg(b"raw"), target_size_bytes=10)
        assert result.pass_index_used == 2
        assert result.byte_length == 700

    def test_passes_walked_in_order(self) -> None:
        transcoder = _make_transcoder([900, 800, 700])
        CompressionPlanner(transcoder).plan(_jpeg(b"raw"), target_size_bytes=10)
        used = [call.args[1] for call in transcoder.transcode.call_args_list]
        assert used == list(COMPRESSION_LADDER)

    def test_result_metadata(self) -> None:
        transcoder = _make_transcoder([10])
        source = SourceImage(data=b"raw", mime_type="image/png", filename="recto.png")
        result = CompressionPlanner(transcoder).plan(source, target_size_bytes=500)
        assert result.format == "jpeg"
        assert result.mime_type == "image/jpeg"
        assert result.filename == "recto.jpg"

    def test_decode_error_propagates(self) -> None:
        transcoder = MagicMock(spec=ImageTranscoder)
        transcoder.transcode.side_effect = DecodeError("bad")
        with pytest.raises(DecodeError):
            CompressionPlanner(transcoder).plan(_jpeg(b"raw"), target_size_bytes=500)

    def test_custom_ladder_validated(self) -> None:
        with pytest.raises(ValueError):
            CompressionPlanner(ladder=(CompressionPass(100, 0.5), CompressionPass(200, 0.5)))


class TestPlanPassthrough:
    def test_pdf_skips_ladder(self, sample_pdf_bytes: bytes) -> None:
        transcoder = MagicMock(spec=ImageTranscoder)
        source = SourceImage(data=sample_pdf_bytes, mime_type="application/pdf", filename="a.pdf")
        result = CompressionPlanner(transcoder).plan(source, target_size_bytes=1)
        assert result.encoded_bytes == sample_pdf_bytes
        assert result.pass_index_used is None
        assert result.format == "pdf"
        transcoder.transcode.assert_not_called()


class TestPlanWithPillow:
    def test_large_image_fits_largest_pass_dimension(self, large_jpeg_bytes: bytes) -> None:
        result = CompressionPlanner().plan(_jpeg(large_jpeg_bytes), target_size_bytes=5 * 1024 * 1024)
        assert result.pass_index_used == 0
        assert max(result.width, result.height) <= 2560

    def test_unreachable_target_uses_most_aggressive_pass(self, large_jpeg_bytes: bytes) -> None:
        result = CompressionPlanner().plan(_jpeg(large_jpeg_bytes), target_size_bytes=1)
        assert result.pass_index_used == len(COMPRESSION_LADDER) - 1
        assert max(result.width, result.height) <= 1920

    def test_output_byte_identical_across_runs(self, large_jpeg_bytes: bytes) -> None:
        planner = CompressionPlanner()
        first = planner.plan(_jpeg(large_jpeg_bytes), target_size_bytes=1)
        second = planner.plan(_jpeg(large_jpeg_bytes), target_size_bytes=1)
        assert first.encoded_bytes == second.encoded_bytes

    def test_small_image_not_upsampled(self, small_jpeg_bytes: bytes) -> None:
        result = CompressionPlanner().plan(_jpeg(small_jpeg_bytes), target_size_bytes=5 * 1024 * 1024)
        assert (result.width, result.height) == (640, 400)
