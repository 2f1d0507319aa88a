"""
SQLite-backed slip store.

Tables:
- slips: one row per uploaded slip, holding the OCR text, confidence,
  serialized verification result and lifecycle status.

Rows are reserved before a job is enqueued (the row id becomes the job id)
and updated exactly once by the processing queue when the job finishes.
"""

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from slipcheck.jobs.sinks import SlipUpdate
from slipcheck.utils.logger import get_logger
from slipcheck.verification.models import JobStatus

logger = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS slips (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    filename TEXT,
    transaction_id TEXT,
    expected_amount TEXT,
    status TEXT NOT NULL,
    ocr_text TEXT,
    ocr_confidence REAL,
    validation_result TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_slips_status ON slips(status);
"""


@dataclass
class SlipRecord:
    """Stored state of one slip."""

    id: str
    filename: str | None
    transaction_id: str | None
    expected_amount: str | None
    status: JobStatus
    ocr_text: str | None
    ocr_confidence: float | None
    validation_result: dict[str, Any] | None
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "SlipRecord":
        """Create from database row."""
        return cls(
            id=str(row["id"]),
            filename=row["filename"],
            transaction_id=row["transaction_id"],
            expected_amount=row["expected_amount"],
            status=JobStatus(row["status"]),
            ocr_text=row["ocr_text"],
            ocr_confidence=row["ocr_confidence"],
            validation_result=(
                json.loads(row["validation_result"]) if row["validation_result"] else None
            ),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class SlipStore:
    """SQLite store for slip rows; doubles as the queue's result sink.

    Every call opens its own connection and transaction, so concurrent
    single-row updates from different jobs do not interfere.
    """

    def __init__(self, db_path: Path | str):
        """
        Initialize the slip store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.executescript(_SCHEMA)

    def reserve(
        self,
        filename: str | None = None,
        transaction_id: str | None = None,
        expected_amount: str | None = None,
    ) -> str:
        """Insert a queued row for a new upload and return its id."""
        now = datetime.now(UTC).isoformat()
        initial = {
            "stage": JobStatus.QUEUED.value,
            "transactionId": transaction_id or None,
            "expectedAmount": expected_amount or None,
            "queuedAt": now,
        }
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO slips (filename, transaction_id, expected_amount, status,
                                   validation_result, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    filename,
                    transaction_id or None,
                    expected_amount or None,
                    JobStatus.QUEUED.value,
                    json.dumps(initial),
                    now,
                    now,
                ),
            )
            slip_id = cursor.lastrowid
        if slip_id is None:
            raise RuntimeError("Slip record identifier missing after insert")
        logger.debug("Reserved slip row %s for %s", slip_id, filename)
        return str(slip_id)

    def update(self, job_id: str, update: SlipUpdate) -> None:
        """Write the terminal outcome of a job into its row.

        OCR columns are only overwritten when the update carries them.
        """
        with self._transaction() as conn:
            if update.text is None and update.confidence is None:
                cursor = conn.execute(
                    """
                    UPDATE slips SET validation_result = ?, status = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        update.result_json,
                        update.status.value,
                        update.updated_at.isoformat(),
                        int(job_id),
                    ),
                )
            else:
                cursor = conn.execute(
                    """
                    UPDATE slips SET ocr_text = ?, ocr_confidence = ?, validation_result = ?,
                                     status = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        update.text,
                        update.confidence if update.confidence is not None else 0.0,
                        update.result_json,
                        update.status.value,
                        update.updated_at.isoformat(),
                        int(job_id),
                    ),
                )
            updated = cursor.rowcount
        if updated == 0:
            logger.warning("No slip row %s to update", job_id)

    def get(self, job_id: str) -> SlipRecord | None:
        """Fetch one slip row."""
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM slips WHERE id = ?", (int(job_id),)).fetchone()
        return SlipRecord.from_row(row) if row else None

    def list_by_status(self, status: JobStatus) -> list[SlipRecord]:
        """Fetch all slips in a given status, oldest first."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM slips WHERE status = ? ORDER BY id", (status.value,)
            ).fetchall()
        return [SlipRecord.from_row(row) for row in rows]
