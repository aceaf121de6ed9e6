import pytest

from idsubmit.imaging.file_detection import (
    detect_file_type,
    format_for_mime,
    guess_mime_type,
)


class TestDetectFileType:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            (b"%PDF-1.7", ("pdf", "application/pdf")),
            (b"\xff\xd8\xff\xe0\x00\x10JFIF", ("jpeg", "image/jpeg")),
            (b"\x89PNG\r\n\x1a\n", ("png", "image/png")),
        ],
    )
    def test_known_signatures(self, header: bytes, expected: tuple[str, str]) -> None:
        assert detect_file_type(header) == expected

    def test_unknown_signature(self) -> None:
        assert detect_file_type(b"GIF89a") is None


class TestGuessMimeType:
    def test_magic_bytes_win_over_extension(self) -> None:
        assert guess_mime_type(b"%PDF-1.4 ...", "scan.jpg") == "application/pdf"

    def test_falls_back_to_extension(self) -> None:
        assert guess_mime_type(b"????", "photo.png") == "image/png"

    def test_unknown_everything(self) -> None:
        assert guess_mime_type(b"????", "") == "application/octet-stream"


class TestFormatForMime:
    def test_jpg_alias(self) -> None:
        assert format_for_mime("image/jpg") == "jpeg"

    def test_pdf(self) -> None:
        assert format_for_mime("application/pdf") == "pdf"
