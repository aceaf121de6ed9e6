import pytest

from idsubmit.imaging.models import CompressionResult
from idsubmit.submission.exceptions import (
    MissingIdentityError,
    PayloadTooLargeError,
    PreconditionError,
    SubmissionError,
    UnsupportedFormatError,
)
from idsubmit.submission.models import DocumentKind, SubmissionRequest


def _result(size: int) -> CompressionResult:
    return CompressionResult(
        encoded_bytes=b"x" * size,
        pass_index_used=0,
        format="jpeg",
        mime_type="image/jpeg",
        filename="f.jpg",
    )


class TestDocumentKind:
    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("Passeport", DocumentKind.PASSPORT),
            ("passport", DocumentKind.PASSPORT),
            ("CNI", DocumentKind.CNI),
            ("Carte d'identité", DocumentKind.CNI),
            ("Permis de conduire", DocumentKind.DRIVER_LICENSE),
            ("driver license", DocumentKind.DRIVER_LICENSE),
        ],
    )
    def test_from_label(self, label: str, expected: DocumentKind) -> None:
        assert DocumentKind.from_label(label) is expected

    @pytest.mark.parametrize("label", [None, "", "   ", "titre de séjour"])
    def test_from_label_unknown(self, label: str | None) -> None:
        assert DocumentKind.from_label(label) is None

    def test_wire_value_known(self) -> None:
        assert DocumentKind.wire_value("permis") == "DRIVER_LICENSE"

    def test_wire_value_unknown_upper_cased(self) -> None:
        assert DocumentKind.wire_value("titre de séjour") == "TITRE DE SÉJOUR"

    def test_wire_value_empty(self) -> None:
        assert DocumentKind.wire_value(None) == ""


class TestSubmissionRequest:
    def test_combined_length_front_only(self) -> None:
        request = SubmissionRequest(front=_result(10), back=None, declared_kind="", subject_id="u")
        assert request.combined_byte_length == 10

    def test_combined_length_both_sides(self) -> None:
        request = SubmissionRequest(front=_result(10), back=_result(5), declared_kind="", subject_id="u")
        assert request.combined_byte_length == 15


class TestSubmissionExceptions:
    @pytest.mark.parametrize("exc", [MissingIdentityError, PayloadTooLargeError, UnsupportedFormatError])
    def test_are_precondition_errors(self, exc: type[Exception]) -> None:
        assert issubclass(exc, PreconditionError)
        assert issubclass(exc, SubmissionError)
