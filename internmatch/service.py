"""
Allocation runs against the database.

Owns everything around the engine: serializing runs, clearing the previous
run's allocations, loading students and internships, and storing the new
allocations. A run either commits in full or leaves the store untouched.
"""

import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from sqlalchemy.exc import OperationalError

from .allocator import allocate
from .config import AllocationConfig, DB_MAX_RETRIES, RUN_LOCK_TIMEOUT_SECONDS
from .database import get_session, init_database
from .errors import AllocationInProgressError
from .logger import get_logger
from .models import AllocationResult
from .retry import exponential_backoff, is_transient_db_error
from .schema import parse_records
from .storage import add_allocations, clear_allocations, load_candidates, load_positions, upsert_internship, upsert_student

_RUN_LOCK = threading.Lock()


def _is_transient(e: Exception) -> bool:
    return isinstance(e, OperationalError) and is_transient_db_error(e)


def _log_retry(attempt: int, e: Exception, delay: float) -> None:
    get_logger().warning(
        "Database busy, retrying allocation transaction",
        attempt=attempt,
        delay=delay,
        error=str(e),
    )


def _allocate_in_transaction(db_path: Path, config: AllocationConfig) -> AllocationResult:
    logger = get_logger()
    counters = logger.snapshot_metrics()
    session = get_session(db_path)
    try:
        removed = clear_allocations(session)
        logger.debug("Cleared previous allocations", removed=removed)

        candidates = load_candidates(session)
        positions = load_positions(session)
        result = allocate(candidates, positions, config)

        add_allocations(session, result.assignments)
        session.commit()
        return result
    except Exception:
        session.rollback()
        # Nothing was committed, so nothing was allocated
        logger.restore_metrics(counters)
        raise
    finally:
        session.close()


def run_allocation(
    db_path: Path,
    config: Optional[AllocationConfig] = None,
    lock_timeout: float = RUN_LOCK_TIMEOUT_SECONDS,
    max_retries: int = DB_MAX_RETRIES,
) -> Dict[str, Any]:
    """
    Replace all stored allocations with a fresh run.

    Args:
        db_path: Path to SQLite database file
        config: Engine configuration (defaults to the reference weights)
        lock_timeout: Seconds to wait for a concurrent run to finish
        max_retries: Retries for a busy database

    Returns:
        {"success", "message", "allocations", "processed"} response dict

    Raises:
        AllocationInProgressError: If another run holds the lock too long.
        AllocationError: On validation or ledger failures (nothing committed).
    """
    logger = get_logger()
    config = config or AllocationConfig()

    if not _RUN_LOCK.acquire(timeout=lock_timeout):
        raise AllocationInProgressError(
            f"Another allocation run is in progress (waited {lock_timeout:.0f}s)"
        )
    try:
        logger.record_run_start()
        logger.info("Starting allocation process...", db=str(db_path))
        init_database(db_path)

        transaction = exponential_backoff(
            max_retries=max_retries,
            exceptions=(OperationalError,),
            retry_if=_is_transient,
            on_retry=_log_retry,
        )(_allocate_in_transaction)

        try:
            result = transaction(db_path, config)
        except Exception as e:
            logger.record_run_failure(type(e).__name__)
            logger.error("Allocation run failed", error=str(e), error_type=type(e).__name__)
            raise

        logger.record_run_complete()
        assigned = result.summary.assigned
        return {
            "success": True,
            "message": f"Successfully allocated {assigned} students",
            "allocations": assigned,
            "processed": result.summary.candidates_processed,
        }
    finally:
        _RUN_LOCK.release()


def allocate_records(
    candidates: Sequence[Mapping[str, Any]],
    positions: Sequence[Mapping[str, Any]],
    config: Optional[AllocationConfig] = None,
) -> AllocationResult:
    """Run the engine on plain dict records with no database."""
    parsed_candidates, parsed_positions = parse_records(candidates, positions)
    return allocate(parsed_candidates, parsed_positions, config)


def import_records(
    db_path: Path,
    candidates: Sequence[Mapping[str, Any]],
    positions: Sequence[Mapping[str, Any]],
) -> Dict[str, Dict[str, int]]:
    """
    Validate and upsert student and internship records in one transaction.

    Returns:
        Per-kind counts of new / updated / no-change rows.
    """
    parsed_candidates, parsed_positions = parse_records(candidates, positions)
    init_database(db_path)
    session = get_session(db_path)
    counts: Dict[str, Dict[str, int]] = {
        "students": {"new": 0, "updated": 0, "no-change": 0},
        "internships": {"new": 0, "updated": 0, "no-change": 0},
    }
    try:
        for candidate in parsed_candidates:
            counts["students"][upsert_student(session, candidate)["status"]] += 1
        for position in parsed_positions:
            counts["internships"][upsert_internship(session, position)["status"]] += 1
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    get_logger().info("Imported records", **counts)
    return counts
