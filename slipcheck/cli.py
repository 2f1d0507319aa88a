"""Command-line interface for verifying payment slips.

Provides a ``verify`` subcommand for a single slip and a ``batch``
subcommand that pushes a folder of slips through the processing queue,
records outcomes in the SQLite store and exports a CSV summary.
"""

import argparse
import asyncio
import csv
import json
import mimetypes
import sys
from pathlib import Path

from slipcheck.jobs.processing_queue import SlipProcessingQueue, is_supported_mime_type
from slipcheck.jobs.sinks import LoggingNotifier
from slipcheck.store.sqlite_store import SlipStore
from slipcheck.utils.config import AppConfig, load_config
from slipcheck.utils.logger import get_logger, setup_logging
from slipcheck.verification.models import JobStatus, VerificationJob
from slipcheck.verification.verifier import SlipVerifier

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.tiff", "*.tif", "*.webp", "*.pdf")
_CSV_COLUMNS = [
    "id",
    "filename",
    "status",
    "transaction_id",
    "expected_amount",
    "ocr_confidence",
    "match",
    "distance",
    "detected_amount",
    "amount_match",
    "error",
]


def guess_mime_type(path: Path) -> str:
    """Guess a file's content type from its extension."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/octet-stream"


def _find_slips(input_dir: Path) -> list[Path]:
    """Find all supported slip files in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of slip file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _load_manifest(path: Path | None) -> dict[str, dict[str, str]]:
    """Read a CSV manifest mapping ``filename`` to expected values.

    Args:
        path: Manifest with ``filename``, ``transaction_id`` and
            ``expected_amount`` columns, or ``None``.

    Returns:
        Expected values keyed by file name.
    """
    if path is None:
        return {}
    with open(path, newline="") as f:
        return {
            row["filename"]: {
                "transaction_id": (row.get("transaction_id") or "").strip(),
                "expected_amount": (row.get("expected_amount") or "").strip(),
            }
            for row in csv.DictReader(f)
            if row.get("filename")
        }


def verify_single(
    file_path: Path,
    transaction_id: str | None = None,
    expected_amount: str | None = None,
    config: AppConfig | None = None,
) -> dict[str, object]:
    """Verify one slip file and return its result with the derived status.

    Args:
        file_path: Slip image or PDF.
        transaction_id: Expected transaction id.
        expected_amount: Expected amount.
        config: Application configuration; loaded from disk when omitted.

    Returns:
        Dictionary with filename, status and the verification result.
    """
    config = config or load_config()
    verifier = SlipVerifier(config)
    result = asyncio.run(
        verifier.verify(
            file_path.read_bytes(),
            mime_type=guess_mime_type(file_path),
            expected_transaction_id=transaction_id,
            expected_amount=expected_amount,
        )
    )
    return {
        "filename": file_path.name,
        "status": JobStatus.from_result(result).value,
        "result": result.to_dict(),
    }


async def _run_batch(
    files: list[Path],
    manifest: dict[str, dict[str, str]],
    store: SlipStore,
    config: AppConfig,
) -> list[str]:
    queue = SlipProcessingQueue(
        SlipVerifier(config),
        store,
        notifier=LoggingNotifier(),
        concurrency=config.queue.concurrency,
    )
    job_ids: list[str] = []
    for file_path in files:
        expected = manifest.get(file_path.name, {})
        mime_type = guess_mime_type(file_path)
        if not is_supported_mime_type(mime_type):
            logger.warning("Skipping %s: unsupported type %s", file_path.name, mime_type)
            continue
        job_id = store.reserve(
            filename=file_path.name,
            transaction_id=expected.get("transaction_id"),
            expected_amount=expected.get("expected_amount"),
        )
        queue.enqueue(
            VerificationJob(
                id=job_id,
                raw_bytes=file_path.read_bytes(),
                mime_type=mime_type,
                expected_transaction_id=expected.get("transaction_id") or None,
                expected_amount=expected.get("expected_amount") or None,
            )
        )
        job_ids.append(job_id)

    await queue.wait_idle()
    return job_ids


def process_folder(
    input_dir: Path,
    output_csv: Path,
    manifest_path: Path | None = None,
    db_path: Path | None = None,
    config: AppConfig | None = None,
) -> dict[str, int]:
    """Verify every slip in a folder through the processing queue.

    Args:
        input_dir: Directory containing slip files.
        output_csv: Path for the CSV summary.
        manifest_path: Optional CSV of expected ids and amounts.
        db_path: SQLite database path; defaults to the configured one.
        config: Application configuration; loaded from disk when omitted.

    Returns:
        Summary dict with counts per terminal status.
    """
    config = config or load_config()
    files = _find_slips(input_dir)
    if not files:
        logger.warning("No slips found in %s", input_dir)
        return {"total": 0, "validated": 0, "pending": 0, "failed": 0}

    logger.info("Found %d slips to verify", len(files))
    store = SlipStore(db_path or Path(config.store.database_path))
    manifest = _load_manifest(manifest_path)
    job_ids = asyncio.run(_run_batch(files, manifest, store, config))

    rows = [_record_row(store, job_id) for job_id in job_ids]
    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(rows)}
    for status in (JobStatus.VALIDATED, JobStatus.PENDING, JobStatus.FAILED):
        summary[status.value] = sum(1 for r in rows if r["status"] == status.value)
    _print_summary(summary, output_csv)
    return summary


def _record_row(store: SlipStore, job_id: str) -> dict[str, object]:
    record = store.get(job_id)
    if record is None:
        return {"id": job_id, "status": "missing"}
    result = record.validation_result or {}
    return {
        "id": record.id,
        "filename": record.filename,
        "status": record.status.value,
        "transaction_id": record.transaction_id,
        "expected_amount": record.expected_amount,
        "ocr_confidence": record.ocr_confidence,
        "match": result.get("match"),
        "distance": result.get("distance"),
        "detected_amount": result.get("detectedAmount"),
        "amount_match": result.get("amountMatch"),
        "error": result.get("error"),
    }


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write per-slip outcomes to a CSV file.

    Args:
        rows: One dictionary per slip.
        output_path: Path for the output CSV file.
    """
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch verification summary to stdout."""
    print(f"\n{'=' * 50}")
    print("Slip Verification Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Validated:  {summary['validated']}")
    print(f"Pending:    {summary['pending']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Payment slip verifier",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    verify_parser = subparsers.add_parser("verify", help="Verify a single slip")
    verify_parser.add_argument("file", type=Path, help="Slip image or PDF")
    verify_parser.add_argument("-t", "--transaction-id", help="Expected transaction id")
    verify_parser.add_argument("-a", "--expected-amount", help="Expected amount")
    verify_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Verify a folder of slips")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with slips")
    batch_parser.add_argument(
        "-m",
        "--manifest",
        type=Path,
        help="CSV with filename, transaction_id and expected_amount columns",
    )
    batch_parser.add_argument("--db", type=Path, help="SQLite database path")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("slip_results.csv"),
        help="Output CSV file (default: slip_results.csv)",
    )

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "verify":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        result = verify_single(args.file, args.transaction_id, args.expected_amount, config)
        output_str = json.dumps(result, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        if args.manifest and not args.manifest.exists():
            print(f"Error: {args.manifest} does not exist", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.manifest, args.db, config)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
