"""
Quota ledger: remaining seats per position and category for one run.

A ledger is built fresh for each allocation run and owned by that run only.
Counters start at the position's reservation counts and only ever go down.
"""

from typing import Dict, Iterable

from .errors import InvariantViolation
from .models import Category, CATEGORY_CODES, Position


class QuotaLedger:
    """Per-position, per-category remaining-seat counters."""

    def __init__(self, remaining: Dict[str, Dict[str, int]]):
        self._remaining = remaining

    @classmethod
    def initialize(cls, positions: Iterable[Position]) -> "QuotaLedger":
        """Build a ledger from each position's reservations."""
        remaining: Dict[str, Dict[str, int]] = {}
        for position in positions:
            remaining[position.id] = {
                code: position.reserved_for(Category(code)) for code in CATEGORY_CODES
            }
        return cls(remaining)

    def has_room(self, position_id: str, category: Category) -> bool:
        # Unknown positions and categories never have room.
        return self.remaining(position_id, category) > 0

    def consume(self, position_id: str, category: Category) -> None:
        """
        Take one seat from a position's category bucket.

        Raises:
            InvariantViolation: If the bucket is already empty or unknown.
        """
        if not self.has_room(position_id, category):
            raise InvariantViolation(
                f"No remaining {_code(category)} seats on position {position_id!r}"
            )
        self._remaining[position_id][_code(category)] -= 1

    def remaining(self, position_id: str, category: Category) -> int:
        return self._remaining.get(position_id, {}).get(_code(category), 0)

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        """Return a copy of all counters."""
        return {pid: dict(buckets) for pid, buckets in self._remaining.items()}


def _code(category) -> str:
    return category.value if isinstance(category, Category) else str(category)
