from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExtractionResult:
    """Canonical extraction result every consumer depends on.

    ``confidence_score`` is None only when the backend omitted it and no
    placeholder is configured. ``confidence_is_placeholder`` marks a score that
    was substituted rather than measured.
    """

    document_type: str = ""
    document_number: str = ""
    holder_name: str = ""
    date_of_birth: str = ""
    issue_date: str = ""
    expiration_date: str = ""
    is_valid: bool = False
    validation_message: str = ""
    confidence_score: float | None = None
    has_uncertainty: bool = False
    additional_fields: dict[str, str] = field(default_factory=dict)
    raw_extracted_text: str = ""
    confidence_is_placeholder: bool = False
    document_id: str = ""

    def to_dict(self) -> dict[str, object]:
        """Wire shape consumed by the UI layer."""
        return {
            "documentType": self.document_type,
            "documentNumber": self.document_number,
            "holderName": self.holder_name,
            "dateOfBirth": self.date_of_birth,
            "issueDate": self.issue_date,
            "expirationDate": self.expiration_date,
            "isValid": self.is_valid,
            "validationMessage": self.validation_message,
            "confidenceScore": self.confidence_score,
            "hasUncertainty": self.has_uncertainty,
            "additionalFields": dict(self.additional_fields),
            "rawExtractedText": self.raw_extracted_text,
            "confidenceIsPlaceholder": self.confidence_is_placeholder,
            "documentId": self.document_id,
        }
