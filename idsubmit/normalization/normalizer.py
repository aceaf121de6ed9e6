"""Maps arbitrarily-shaped backend payloads onto ExtractionResult.

Decode order for every canonical field:
1. the nested wrapper (``extractedData`` and friends), if the payload has one;
2. the top level of the payload;
3. an empty default.

Within each level, aliases are tried in the order listed in ``FIELD_ALIASES``.
Missing or mistyped fields never raise; only a body that is not a JSON object
does.
"""

import json
import math
import time
from typing import Any, ClassVar

from idsubmit.logging.logger import Log
from idsubmit.normalization.exceptions import MalformedResponseError
from idsubmit.normalization.models import ExtractionResult

_MISSING = object()


class ResponseNormalizer:
    """Builds the canonical ExtractionResult from a backend payload."""

    WRAPPER_KEYS: ClassVar[tuple[str, ...]] = (
        "extractedData",
        "extracted_data",
        "extractionResult",
        "extraction_result",
        "data",
        "result",
    )

    FIELD_ALIASES: ClassVar[dict[str, tuple[str, ...]]] = {
        "document_type": ("documentType", "document_type", "pieceType", "piece_type"),
        "document_number": ("documentNumber", "document_number", "pieceNumber"),
        "holder_name": ("holderName", "holder_name", "fullName", "full_name"),
        "date_of_birth": ("dateOfBirth", "date_of_birth", "birthDate", "birth_date"),
        "issue_date": ("issueDate", "issue_date", "deliveryDate", "delivery_date"),
        "expiration_date": (
            "expirationDate",
            "expiration_date",
            "expiryDate",
            "expiry_date",
        ),
        "is_valid": ("isValid", "is_valid", "valid"),
        "validation_message": ("validationMessage", "validation_message"),
        "confidence_score": ("confidenceScore", "confidence_score", "confidence"),
        "has_uncertainty": ("hasUncertainty", "has_uncertainty"),
        "additional_fields": ("additionalFields", "additional_fields"),
        "raw_extracted_text": (
            "rawExtractedText",
            "raw_extracted_text",
            "rawText",
            "raw_text",
        ),
        "document_id": ("document_id", "documentId", "id"),
    }

    STATUS_KEYS: ClassVar[tuple[str, ...]] = ("status", "verificationStatus", "state")
    VALID_STATUSES: ClassVar[frozenset[str]] = frozenset(
        {"completed", "valid", "verified", "success", "confirmed"}
    )

    def __init__(self, default_confidence_score: float | None = 0.5) -> None:
        if default_confidence_score is not None and not 0.0 <= default_confidence_score <= 1.0:
            raise ValueError("default_confidence_score must be within [0, 1]")
        self._default_confidence = default_confidence_score

    def normalize(self, raw: bytes | str | dict[str, Any]) -> ExtractionResult:
        """Normalize a raw body (bytes, text or already-decoded dict).

        Raises:
            MalformedResponseError: if the body is not a JSON object.
        """
        payload = raw if isinstance(raw, dict) else self._parse_json(raw)
        wrapper = self._find_wrapper(payload)
        levels = [level for level in (wrapper, payload) if level is not None]

        confidence, is_placeholder = self._confidence(self._lookup(levels, "confidence_score"))
        has_uncertainty = _as_bool(self._lookup(levels, "has_uncertainty"), default=False)

        result = ExtractionResult(
            document_type=_as_text(self._lookup(levels, "document_type")),
            document_number=_as_text(self._lookup(levels, "document_number")),
            holder_name=_as_text(self._lookup(levels, "holder_name")),
            date_of_birth=_as_text(self._lookup(levels, "date_of_birth")),
            issue_date=_as_text(self._lookup(levels, "issue_date")),
            expiration_date=_as_text(self._lookup(levels, "expiration_date")),
            is_valid=self._is_valid(levels),
            validation_message=_as_text(self._lookup(levels, "validation_message")),
            confidence_score=confidence,
            has_uncertainty=has_uncertainty or is_placeholder,
            additional_fields=_as_string_map(self._lookup(levels, "additional_fields")),
            raw_extracted_text=_as_text(self._lookup(levels, "raw_extracted_text")),
            confidence_is_placeholder=is_placeholder,
            document_id=self._document_id(payload),
        )
        Log.debug(
            f"Normalized response: nested={wrapper is not None}",
            is_valid=result.is_valid,
            confidence=result.confidence_score,
        )
        return result

    @staticmethod
    def _parse_json(raw: bytes | str) -> dict[str, Any]:
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedResponseError(f"Backend response is not valid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise MalformedResponseError("Backend response must be a JSON object")
        return parsed

    @classmethod
    def _find_wrapper(cls, payload: dict[str, Any]) -> dict[str, Any] | None:
        for key in cls.WRAPPER_KEYS:
            candidate = payload.get(key)
            if isinstance(candidate, dict):
                return candidate
        return None

    @classmethod
    def _lookup(cls, levels: list[dict[str, Any]], field_name: str) -> Any:
        for level in levels:
            for alias in cls.FIELD_ALIASES[field_name]:
                value = level.get(alias, _MISSING)
                if value is not _MISSING and value is not None:
                    return value
        return _MISSING

    @classmethod
    def _document_id(cls, payload: dict[str, Any]) -> str:
        document_id = _as_text(cls._lookup([payload], "document_id"))
        if document_id:
            return document_id
        generated = f"doc_{int(time.time() * 1000)}"
        Log.debug(f"Backend sent no document id, using {generated}")
        return generated

    def _is_valid(self, levels: list[dict[str, Any]]) -> bool:
        explicit = _as_bool(self._lookup(levels, "is_valid"), default=None)
        if explicit is not None:
            return explicit
        for level in levels:
            for key in self.STATUS_KEYS:
                status = level.get(key)
                if isinstance(status, str) and status.strip():
                    return status.strip().lower() in self.VALID_STATUSES
        return False

    def _confidence(self, raw: Any) -> tuple[float | None, bool]:
        score = _as_score(raw)
        if score is not None:
            return score, False
        if raw is not _MISSING:
            Log.warning(f"Unparseable confidence score {raw!r}, treating as absent")
        if self._default_confidence is None:
            Log.warning("Backend sent no confidence score; leaving it unset")
            return None, False
        Log.warning(
            f"Backend sent no confidence score; using placeholder {self._default_confidence}"
        )
        return self._default_confidence, True


def _as_text(value: Any) -> str:
    if value is _MISSING or value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float, bool)):
        return str(value)
    return ""


def _as_bool(value: Any, default: bool | None) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
    if isinstance(value, int):
        return value != 0
    return default


def _as_score(value: Any) -> float | None:
    if isinstance(value, bool) or value is _MISSING:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or math.isnan(value):
        return None
    score = float(value)
    if 1.0 < score <= 100.0:
        score /= 100.0
    return max(0.0, min(1.0, score))


def _as_string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        str(key): item if isinstance(item, str) else json.dumps(item, ensure_ascii=False)
        for key, item in value.items()
        if item is not None
    }
