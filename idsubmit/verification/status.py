import math
from datetime import date
from enum import Enum

from idsubmit.normalization.models import ExtractionResult
from idsubmit.verification.dates import parse_document_date


class VerificationStatus(str, Enum):
    CONFIRMED = "confirmed"
    EXPIRED = "expired"
    UNCLEAR = "unclear"
    UNREADABLE = "unreadable"
    INVALID = "invalid"


class StatusClassifier:
    """Derives a coarse status from an extraction result.

    A confidence score, when present, decides on its own:
    below ``UNREADABLE_BELOW`` the document is unreadable, below
    ``UNCLEAR_BELOW`` it is unclear, otherwise confirmed. Without a score the
    backend's validity flag and the expiration date decide.
    """

    UNREADABLE_BELOW = 0.2
    UNCLEAR_BELOW = 0.6

    def __init__(self, today: date | None = None) -> None:
        self._today = today

    def classify(self, result: ExtractionResult) -> VerificationStatus:
        score = result.confidence_score
        if score is not None and not math.isnan(score):
            if score < self.UNREADABLE_BELOW:
                return VerificationStatus.UNREADABLE
            if score < self.UNCLEAR_BELOW:
                return VerificationStatus.UNCLEAR
            return VerificationStatus.CONFIRMED

        if result.is_valid:
            return VerificationStatus.CONFIRMED
        if self._is_expired(result.expiration_date):
            return VerificationStatus.EXPIRED
        return VerificationStatus.INVALID

    def _is_expired(self, expiration_date: str) -> bool:
        expires_on = parse_document_date(expiration_date)
        if expires_on is None:
            return False
        today = self._today if self._today is not None else date.today()
        return expires_on < today
