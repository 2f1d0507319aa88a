"""Data model of the slip verification pipeline."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any


def utc_now() -> datetime:
    return datetime.now(UTC)


def _amount_str(value: Decimal | None) -> str | None:
    return None if value is None else f"{value:.2f}"


class JobStatus(StrEnum):
    """Lifecycle state of a verification job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    VALIDATED = "validated"
    PENDING = "pending"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.VALIDATED, JobStatus.PENDING, JobStatus.FAILED)

    @classmethod
    def from_result(cls, result: "VerificationResult") -> "JobStatus":
        """Derive the success terminal: validated when the id or the amount matched."""
        if result.match is True or result.amount_match is True:
            return cls.VALIDATED
        return cls.PENDING


@dataclass(frozen=True)
class VerificationJob:
    """One uploaded slip waiting for verification.

    ``id`` must be reserved by the caller (usually a store row) before the
    job is enqueued.
    """

    id: str
    raw_bytes: bytes
    mime_type: str
    expected_transaction_id: str | None = None
    expected_amount: str | Decimal | float | None = None
    enqueued_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of running one slip through the verifier.

    ``match`` and ``amount_match`` are tri-state: ``None`` means there was
    nothing to compare against.
    """

    match: bool | None
    confidence: float
    extracted_text: str
    distance: int | None
    detected_amount: Decimal | None
    expected_amount: Decimal | None
    amount_match: bool | None
    processed_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "match": self.match,
            "confidence": self.confidence,
            "extractedText": self.extracted_text,
            "distance": self.distance,
            "detectedAmount": _amount_str(self.detected_amount),
            "expectedAmount": _amount_str(self.expected_amount),
            "amountMatch": self.amount_match,
            "processedAt": self.processed_at.isoformat(),
        }


@dataclass(frozen=True)
class FailureRecord:
    """Written in place of a result when the pipeline raised."""

    transaction_id: str | None
    error_message: str
    failed_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactionId": self.transaction_id,
            "error": self.error_message,
            "failedAt": self.failed_at.isoformat(),
        }
