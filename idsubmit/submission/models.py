from dataclasses import dataclass
from enum import Enum

from idsubmit.imaging.models import CompressionResult


class DocumentKind(str, Enum):
    PASSPORT = "PASSPORT"
    CNI = "CNI"
    DRIVER_LICENSE = "DRIVER_LICENSE"

    @classmethod
    def from_label(cls, label: str | None) -> "DocumentKind | None":
        """Map a free-form label ("Passeport", "carte d'identité", "permis") to a kind.

        Returns None for an empty or unrecognized label.
        """
        lowered = (label or "").strip().lower()
        if not lowered:
            return None
        for keywords, kind in _LABEL_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                return kind
        return None

    @classmethod
    def wire_value(cls, label: str | None) -> str:
        """Value sent as ``pieceType``: the kind when known, else the label upper-cased."""
        kind = cls.from_label(label)
        if kind is not None:
            return kind.value
        return (label or "").strip().upper()


_LABEL_KEYWORDS: tuple[tuple[tuple[str, ...], DocumentKind], ...] = (
    (("passeport", "passport"), DocumentKind.PASSPORT),
    (("cni", "carte", "identity card", "id card", "id_card"), DocumentKind.CNI),
    (("permis", "driver", "driving"), DocumentKind.DRIVER_LICENSE),
)


@dataclass(frozen=True)
class SubmissionRequest:
    """Everything that goes into one upload, after compression."""

    front: CompressionResult
    back: CompressionResult | None
    declared_kind: str
    subject_id: str
    bearer_token: str | None = None

    @property
    def combined_byte_length(self) -> int:
        back_length = self.back.byte_length if self.back is not None else 0
        return self.front.byte_length + back_length
