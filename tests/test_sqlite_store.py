"""Tests for the SQLite slip store."""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from slipcheck.jobs.sinks import SlipUpdate
from slipcheck.store.sqlite_store import SlipStore
from slipcheck.verification.models import JobStatus


@pytest.fixture
def store(tmp_path: Path) -> SlipStore:
    return SlipStore(tmp_path / "nested" / "slips.db")


class TestSlipStore:
    """Tests for row reservation and updates."""

    def test_reserve_creates_queued_row(self, store: SlipStore) -> None:
        slip_id = store.reserve("slip.png", "TXN1", "10.00")
        record = store.get(slip_id)

        assert record is not None
        assert record.id == slip_id
        assert record.status is JobStatus.QUEUED
        assert record.filename == "slip.png"
        assert record.validation_result["stage"] == "queued"
        assert record.validation_result["transactionId"] == "TXN1"
        assert record.ocr_text is None

    def test_reserve_returns_unique_ids(self, store: SlipStore) -> None:
        assert store.reserve("a.png") != store.reserve("b.png")

    def test_success_update(self, store: SlipStore) -> None:
        slip_id = store.reserve("slip.png")
        store.update(
            slip_id,
            SlipUpdate(
                status=JobStatus.VALIDATED,
                result_json=json.dumps({"match": True}),
                updated_at=datetime(2026, 1, 2, tzinfo=UTC),
                text="Ref TXN1",
                confidence=91.0,
            ),
        )

        record = store.get(slip_id)
        assert record.status is JobStatus.VALIDATED
        assert record.ocr_text == "Ref TXN1"
        assert record.ocr_confidence == 91.0
        assert record.validation_result == {"match": True}
        assert record.updated_at.startswith("2026-01-02")

    def test_failure_update_keeps_ocr_columns(self, store: SlipStore) -> None:
        slip_id = store.reserve("slip.png")
        store.update(
            slip_id,
            SlipUpdate(
                status=JobStatus.FAILED,
                result_json=json.dumps({"error": "boom"}),
                updated_at=datetime.now(UTC),
            ),
        )

        record = store.get(slip_id)
        assert record.status is JobStatus.FAILED
        assert record.ocr_text is None
        assert record.ocr_confidence is None
        assert record.validation_result["error"] == "boom"

    def test_update_only_touches_its_row(self, store: SlipStore) -> None:
        first = store.reserve("a.png")
        second = store.reserve("b.png")
        store.update(
            first,
            SlipUpdate(JobStatus.PENDING, "{}", datetime.now(UTC), text="", confidence=0.0),
        )
        assert store.get(second).status is JobStatus.QUEUED

    def test_update_missing_row_is_ignored(self, store: SlipStore) -> None:
        store.update("999", SlipUpdate(JobStatus.FAILED, "{}", datetime.now(UTC)))
        assert store.get("999") is None

    def test_list_by_status(self, store: SlipStore) -> None:
        ids = [store.reserve(f"{i}.png") for i in range(3)]
        store.update(ids[1], SlipUpdate(JobStatus.FAILED, "{}", datetime.now(UTC)))

        assert [r.id for r in store.list_by_status(JobStatus.QUEUED)] == [ids[0], ids[2]]
        assert [r.id for r in store.list_by_status(JobStatus.FAILED)] == [ids[1]]
