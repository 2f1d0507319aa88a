"""Persistence and notification capabilities consumed by the processing queue.

The queue only knows these two single-method protocols, so the row store
and the push channel can be swapped without touching scheduling code.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from slipcheck.utils.logger import get_logger
from slipcheck.verification.models import JobStatus, VerificationResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class SlipUpdate:
    """Single-row update for a finished job.

    ``text`` and ``confidence`` are ``None`` for failed jobs, whose OCR
    columns are left untouched.
    """

    status: JobStatus
    result_json: str
    updated_at: datetime
    text: str | None = None
    confidence: float | None = None


@dataclass(frozen=True)
class Notification:
    """Terminal outcome of a job, pushed to interested parties."""

    id: str
    status: JobStatus
    result: VerificationResult | None = None
    error: BaseException | None = None


class ResultSink(Protocol):
    def update(self, job_id: str, update: SlipUpdate) -> None: ...


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


@dataclass
class InMemoryResultSink:
    """Keeps every update in arrival order."""

    updates: list[tuple[str, SlipUpdate]] = field(default_factory=list)

    def update(self, job_id: str, update: SlipUpdate) -> None:
        self.updates.append((job_id, update))

    def latest(self, job_id: str) -> SlipUpdate | None:
        for stored_id, update in reversed(self.updates):
            if stored_id == job_id:
                return update
        return None


class LoggingNotifier:
    """Notifier that writes job outcomes to the log."""

    def notify(self, notification: Notification) -> None:
        if notification.error is not None:
            logger.warning(
                "Slip %s finished as %s: %s",
                notification.id,
                notification.status,
                notification.error,
            )
        else:
            logger.info("Slip %s finished as %s", notification.id, notification.status)
