"""
Structured logging for internmatch.

Provides centralized logging with console and file outputs, plus run
metrics for monitoring allocation outcomes.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import copy
import json


CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT))
    return handler


class StructuredLogger:
    """
    Centralized logger writing to stderr and a dated log file.
    Keeps counters for allocation runs so a CLI session can report them.
    """

    def __init__(
        self,
        name: str = "internmatch",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Args:
            name: Logger name
            level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to internmatch_YYYYMMDD.log
            enable_console: Write logs to stderr so stdout stays clean
        """
        numeric_level = getattr(logging, level.upper())
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if enable_file else numeric_level)
        self.logger.handlers.clear()

        self.metrics = self._empty_metrics()

        if enable_console:
            self.logger.addHandler(
                _handler(logging.StreamHandler(sys.stderr), numeric_level, CONSOLE_FORMAT)
            )

        if enable_file:
            log_dir = Path("logs") if log_dir is None else Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / f"internmatch_{datetime.now():%Y%m%d}.log"
            # The file always gets DEBUG, including ledger snapshots
            self.logger.addHandler(
                _handler(logging.FileHandler(log_file, encoding='utf-8'), logging.DEBUG, FILE_FORMAT)
            )

        if not self.logger.handlers:
            self.logger.addHandler(logging.NullHandler())

    @staticmethod
    def _empty_metrics() -> dict:
        return {
            "runs_started": 0,
            "runs_completed": 0,
            "runs_failed": 0,
            "candidates_processed": 0,
            "assignments_made": 0,
            "unassigned_by_reason": {},
            "seats_filled": {},
            "errors_by_type": {},
        }

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_run_start(self):
        self.metrics["runs_started"] += 1

    def record_run_complete(self):
        self.metrics["runs_completed"] += 1

    def record_run_failure(self, error_type: str):
        """Record an aborted run and the error class that aborted it."""
        self.metrics["runs_failed"] += 1
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def record_candidate_processed(self):
        self.metrics["candidates_processed"] += 1

    def record_assignment(self, position_id: str):
        """Record a committed seat on a position."""
        self.metrics["assignments_made"] += 1
        filled = self.metrics["seats_filled"]
        filled[position_id] = filled.get(position_id, 0) + 1

    def record_unassigned(self, reason: str):
        """Record a candidate left without a seat (no_eligible_position, below_threshold)."""
        reasons = self.metrics["unassigned_by_reason"]
        reasons[reason] = reasons.get(reason, 0) + 1

    def snapshot_metrics(self) -> dict:
        return copy.deepcopy(self.metrics)

    def restore_metrics(self, snapshot: dict):
        """Roll counters back to a snapshot, e.g. after a rolled-back transaction."""
        self.metrics = copy.deepcopy(snapshot)

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = {
            k: (dict(v) if isinstance(v, dict) else v) for k, v in self.metrics.items()
        }
        processed = metrics_copy["candidates_processed"]
        if processed > 0:
            metrics_copy["assignment_rate"] = round(
                metrics_copy["assignments_made"] / processed, 3
            )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        processed = metrics["candidates_processed"]
        assigned = metrics["assignments_made"]
        overall_rate = round(metrics.get("assignment_rate", 0) * 100, 1)

        self.info("=== Allocation Metrics ===")
        self.info(
            f"Runs: {metrics['runs_completed']} completed, "
            f"{metrics['runs_failed']} failed ({metrics['runs_started']} started)"
        )
        self.info(f"Candidates: {assigned}/{processed} assigned ({overall_rate}%)")

        if metrics["unassigned_by_reason"]:
            self.info("Unassigned:")
            for reason, count in metrics["unassigned_by_reason"].items():
                self.info(f"  {reason}: {count}")

        if metrics["seats_filled"]:
            self.info("Seats filled:")
            for position_id, count in metrics["seats_filled"].items():
                self.info(f"  {position_id}: {count}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "internmatch",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def configure_logger(settings) -> StructuredLogger:
    """Replace the global logger using runtime Settings."""
    reset_logger()
    return get_logger(
        level=settings.log_level,
        log_dir=settings.log_dir,
        enable_file=settings.log_to_file,
    )


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
