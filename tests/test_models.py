"""Tests for the verification data model."""

import json
from decimal import Decimal

import pytest

from conftest import make_result
from slipcheck.verification.models import FailureRecord, JobStatus, VerificationJob


class TestJobStatus:
    """Tests for status derivation."""

    @pytest.mark.parametrize(
        ("match", "amount_match", "expected"),
        [
            (True, None, JobStatus.VALIDATED),
            (None, True, JobStatus.VALIDATED),
            (False, True, JobStatus.VALIDATED),
            (True, False, JobStatus.VALIDATED),
            (False, False, JobStatus.PENDING),
            (None, None, JobStatus.PENDING),
            (False, None, JobStatus.PENDING),
        ],
    )
    def test_from_result(
        self, match: bool | None, amount_match: bool | None, expected: JobStatus
    ) -> None:
        assert JobStatus.from_result(make_result(match, amount_match)) is expected

    def test_terminal_states(self) -> None:
        assert not JobStatus.QUEUED.is_terminal
        assert not JobStatus.PROCESSING.is_terminal
        assert JobStatus.VALIDATED.is_terminal
        assert JobStatus.PENDING.is_terminal
        assert JobStatus.FAILED.is_terminal

    def test_string_values(self) -> None:
        assert JobStatus.FAILED == "failed"


class TestSerialization:
    """Tests for JSON-ready representations."""

    def test_result_to_dict(self) -> None:
        data = make_result(True, True).to_dict()
        assert data["match"] is True
        assert data["detectedAmount"] == "10.00"
        assert data["expectedAmount"] == "10.00"
        json.dumps(data)

    def test_failure_to_dict(self) -> None:
        data = FailureRecord(transaction_id="T1", error_message="boom").to_dict()
        assert data["transactionId"] == "T1"
        assert data["error"] == "boom"
        assert "failedAt" in data

    def test_job_is_immutable(self) -> None:
        job = VerificationJob(id="1", raw_bytes=b"x", mime_type="image/png")
        with pytest.raises(AttributeError):
            job.id = "2"  # type: ignore[misc]

    def test_job_defaults(self) -> None:
        job = VerificationJob(id="1", raw_bytes=b"x", mime_type="image/png", expected_amount=Decimal("5"))
        assert job.expected_transaction_id is None
        assert job.enqueued_at.tzinfo is not None
