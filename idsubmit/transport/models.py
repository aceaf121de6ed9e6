import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar

from idsubmit.config.settings import Settings

# (field name, (filename or None, content, content type or None))
MultipartPart = tuple[str, tuple[str | None, bytes, str | None]]


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient_failure"
    FATAL_FAILURE = "fatal_failure"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and timing for one logical request.

    Attributes:
        max_attempts: Retries allowed after the first attempt.
        base_backoff_seconds: Delay before the first retry.
        backoff_multiplier: Growth factor between consecutive retries.
        per_attempt_timeout_seconds: Deadline for each individual attempt.
    """

    max_attempts: int = 3
    base_backoff_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    per_attempt_timeout_seconds: float = 60.0

    UPLOAD_TIMEOUT_SECONDS: ClassVar[float] = 300.0

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if self.base_backoff_seconds < 0 or self.backoff_multiplier < 1:
            raise ValueError("backoff must be non-negative and non-decreasing")
        if self.per_attempt_timeout_seconds <= 0:
            raise ValueError("per_attempt_timeout_seconds must be positive")

    @property
    def total_attempts(self) -> int:
        return 1 + self.max_attempts

    def backoff_for_retry(self, retry_number: int) -> float:
        """Delay before 1-indexed retry ``retry_number``."""
        if retry_number < 1:
            raise ValueError("retry_number is 1-indexed")
        return self.base_backoff_seconds * self.backoff_multiplier ** (retry_number - 1)

    def for_upload(self, timeout_seconds: float | None = None) -> "RetryPolicy":
        """Same budget with the extended per-attempt deadline used for uploads."""
        return replace(
            self,
            per_attempt_timeout_seconds=timeout_seconds or self.UPLOAD_TIMEOUT_SECONDS,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.max_retries,
            base_backoff_seconds=settings.base_backoff_seconds,
            backoff_multiplier=settings.backoff_multiplier,
            per_attempt_timeout_seconds=settings.request_timeout_seconds,
        )


@dataclass
class TransportAttempt:
    """Bookkeeping for a single attempt; discarded once classified."""

    attempt_number: int
    started_at: float
    timeout_deadline: float
    outcome: AttemptOutcome | None = None


@dataclass(frozen=True)
class OutboundRequest:
    """One logical request, replayable across attempts."""

    method: str
    path: str
    files: list[MultipartPart] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TransportResponse:
    """Final response plus aggregate retry statistics."""

    status_code: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    attempts: int = 1
    total_backoff_seconds: float = 0.0

    @property
    def retries(self) -> int:
        return self.attempts - 1

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body)
