"""Bounded-concurrency FIFO queue running slip verifications.

Jobs start strictly in enqueue order. With the default concurrency of one
they also finish in that order, which keeps row writes sequential; OCR
dominates the cost of a job anyway. Every job ends in exactly one terminal
state, and a failing job never stops the queue.
"""

import asyncio
import json
from collections import deque

from slipcheck.preprocessing.pdf_render import PDF_MIME_TYPE
from slipcheck.utils.logger import get_logger
from slipcheck.verification.errors import InvalidJobError, UnsupportedFileTypeError
from slipcheck.verification.models import (
    FailureRecord,
    JobStatus,
    VerificationJob,
    VerificationResult,
)
from slipcheck.verification.verifier import SlipVerifier

from .sinks import Notification, Notifier, ResultSink, SlipUpdate

logger = get_logger(__name__)

SUPPORTED_MIME_PREFIX = "image/"


def is_supported_mime_type(mime_type: str | None) -> bool:
    """Accept any image type and PDF."""
    return bool(mime_type) and (
        mime_type.startswith(SUPPORTED_MIME_PREFIX) or mime_type == PDF_MIME_TYPE
    )


def validate_job(job: VerificationJob | None) -> None:
    """Reject malformed jobs before they enter the queue.

    Raises:
        InvalidJobError: If the job, its id or its bytes are missing.
        UnsupportedFileTypeError: If the file is neither image nor PDF.
    """
    if job is None:
        raise InvalidJobError("Job payload with id required")
    if job.id is None or str(job.id).strip() == "":
        raise InvalidJobError("Job payload with id required")
    if not job.raw_bytes:
        raise InvalidJobError(f"Job {job.id} has no file content")
    if not is_supported_mime_type(job.mime_type):
        raise UnsupportedFileTypeError(job.mime_type)


class SlipProcessingQueue:
    """FIFO scheduler that runs one verification per job.

    The pending deque and the in-flight counter are only touched by this
    object, from the event loop thread.

    Args:
        verifier: Slip verifier used for every job.
        sink: Receives one row update per finished job.
        notifier: Optional best-effort notifier, called after persistence.
        concurrency: Maximum number of jobs processed at once.
    """

    def __init__(
        self,
        verifier: SlipVerifier,
        sink: ResultSink,
        notifier: Notifier | None = None,
        concurrency: int = 1,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._verifier = verifier
        self._sink = sink
        self._notifier = notifier
        self._concurrency = concurrency
        self._pending: deque[VerificationJob] = deque()
        self._active_ids: set[str] = set()
        self._in_flight = 0
        self._tasks: set[asyncio.Task[None]] = set()
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def concurrency(self) -> int:
        return self._concurrency

    def size(self) -> int:
        """Number of jobs queued or in flight."""
        return len(self._pending) + self._in_flight

    def is_idle(self) -> bool:
        return not self._pending and self._in_flight == 0

    def enqueue(self, job: VerificationJob) -> None:
        """Admit a job for processing.

        Must be called from a running event loop. Returns immediately;
        outcomes are reported through the sink and the notifier.

        Raises:
            InvalidJobError: If the job is malformed or its id is already
                queued or in flight.
        """
        validate_job(job)
        job_id = str(job.id)
        if job_id in self._active_ids:
            raise InvalidJobError(f"Job {job_id} is already queued")

        loop = asyncio.get_running_loop()
        self._active_ids.add(job_id)
        self._pending.append(job)
        self._idle.clear()
        logger.debug("Queued slip %s (%d waiting)", job_id, len(self._pending))
        loop.call_soon(self._schedule)

    async def wait_idle(self) -> None:
        """Wait until every admitted job has reached a terminal state."""
        await self._idle.wait()

    def _schedule(self) -> None:
        while self._in_flight < self._concurrency and self._pending:
            job = self._pending.popleft()
            self._in_flight += 1
            task = asyncio.get_running_loop().create_task(
                self._run(job), name=f"slip-job-{job.id}"
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, job: VerificationJob) -> None:
        try:
            await self._process(job)
        except Exception:
            logger.exception("Unexpected error while finishing slip %s", job.id)
        finally:
            self._in_flight -= 1
            self._active_ids.discard(str(job.id))
            if self.is_idle():
                self._idle.set()
            asyncio.get_running_loop().call_soon(self._schedule)

    async def _process(self, job: VerificationJob) -> None:
        job_id = str(job.id)
        logger.debug("Slip %s: %s", job_id, JobStatus.PROCESSING)
        try:
            result = await self._verifier.verify(
                job.raw_bytes,
                mime_type=job.mime_type,
                expected_transaction_id=job.expected_transaction_id,
                expected_amount=job.expected_amount,
            )
            status = JobStatus.from_result(result)
            self._sink.update(job_id, self._success_update(job, result, status))
        except Exception as exc:
            logger.exception("Slip processing failed for %s", job_id)
            self._record_failure(job, exc)
            return

        logger.info(
            "Slip %s %s (match=%s, amount_match=%s, confidence=%.1f)",
            job_id,
            status,
            result.match,
            result.amount_match,
            result.confidence,
        )
        self._notify(Notification(id=job_id, status=status, result=result))

    @staticmethod
    def _success_update(
        job: VerificationJob, result: VerificationResult, status: JobStatus
    ) -> SlipUpdate:
        payload = {"transactionId": job.expected_transaction_id or None}
        payload.update(result.to_dict())
        del payload["extractedText"]
        return SlipUpdate(
            status=status,
            result_json=json.dumps(payload),
            updated_at=result.processed_at,
            text=result.extracted_text,
            confidence=result.confidence,
        )

    def _record_failure(self, job: VerificationJob, exc: Exception) -> None:
        job_id = str(job.id)
        failure = FailureRecord(
            transaction_id=job.expected_transaction_id or None,
            error_message=str(exc) or type(exc).__name__,
        )
        try:
            self._sink.update(
                job_id,
                SlipUpdate(
                    status=JobStatus.FAILED,
                    result_json=json.dumps(failure.to_dict()),
                    updated_at=failure.failed_at,
                ),
            )
        except Exception:
            logger.exception("Could not record failure of slip %s", job_id)
        self._notify(Notification(id=job_id, status=JobStatus.FAILED, error=exc))

    def _notify(self, notification: Notification) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(notification)
        except Exception:
            logger.warning("Slip processing notify error for %s", notification.id, exc_info=True)
