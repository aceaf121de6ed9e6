import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any

from idsubmit.config.settings import Settings
from idsubmit.logging.logger import Log

SUBJECT_CLAIMS = ("sub", "user_id", "id")


@dataclass(frozen=True)
class SessionContext:
    """Identity of the submitting user, passed explicitly to the orchestrator."""

    subject_id: str | None = None
    bearer_token: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionContext":
        return cls(subject_id=settings.subject_id, bearer_token=settings.bearer_token)

    def resolve_subject_id(self) -> str | None:
        """Return the stored subject id, else the one carried by the bearer token.

        The token payload is decoded without signature verification; the
        backend remains the authority. A malformed token yields None.
        """
        if self.subject_id and self.subject_id.strip():
            return self.subject_id.strip()
        if not self.bearer_token:
            return None

        payload = _decode_jwt_payload(self.bearer_token)
        if payload is None:
            return None
        for claim in SUBJECT_CLAIMS:
            value = payload.get(claim)
            if value not in (None, ""):
                return str(value)
        Log.warning("Bearer token carries no subject claim")
        return None


def _decode_jwt_payload(token: str) -> dict[str, Any] | None:
    parts = token.split(".")
    if len(parts) != 3:
        Log.warning("Bearer token is not a JWT, cannot resolve subject id")
        return None
    segment = parts[1]
    padded = segment + "=" * (-len(segment) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(padded))
    except (binascii.Error, ValueError) as exc:
        Log.warning(f"Could not decode bearer token payload: {exc}")
        return None
    if not isinstance(payload, dict):
        Log.warning("Bearer token payload is not a JSON object")
        return None
    return payload
