"""
Exception hierarchy for the allocation engine.

Every failure aborts the whole run; nothing here is meant to be caught and
skipped per record.
"""

from typing import Iterable, List


class AllocationError(Exception):
    """Base class for all allocation failures."""
    pass


class ValidationError(AllocationError):
    """Raised when input records are malformed. Carries every message found."""

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        summary = "; ".join(self.errors[:5])
        if len(self.errors) > 5:
            summary += f" (+{len(self.errors) - 5} more)"
        super().__init__(f"Invalid allocation input: {summary}")


class InvariantViolation(AllocationError):
    """Raised when a quota counter would go negative."""
    pass


class AllocationInProgressError(AllocationError):
    """Raised when another allocation run holds the run lock."""
    pass
