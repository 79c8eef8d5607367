"""
Core records exchanged between the allocation engine and its callers.

Candidates and positions are frozen once a run begins. Assignments are
created once per allocated candidate and never mutated.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class Category(str, Enum):
    """Protected categories with set-aside seats."""

    GEN = "GEN"
    SC = "SC"
    ST = "ST"
    OBC = "OBC"
    EWS = "EWS"


CATEGORY_CODES = [c.value for c in Category]


@dataclass(frozen=True)
class Candidate:
    id: str
    merit: float
    skills: str  # comma-separated tags
    category: Category
    location_pref: str
    sector_pref: str
    name: Optional[str] = None

    def __post_init__(self) -> None:
        # Accept plain codes; unknown codes are left for validation to report.
        if not isinstance(self.category, Category) and self.category in CATEGORY_CODES:
            object.__setattr__(self, "category", Category(self.category))

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["category"] = self.category.value
        return d


@dataclass(frozen=True)
class Position:
    id: str
    required_skills: str  # comma-separated tags
    location: str
    sector: str
    total_seats: int
    reservations: Dict[Category, int] = field(default_factory=dict)
    company: Optional[str] = None
    role: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.reservations, dict):
            object.__setattr__(self, "reservations", {
                (Category(c) if c in CATEGORY_CODES else c): n for c, n in self.reservations.items()
            })

    def reserved_for(self, category: Category) -> int:
        return self.reservations.get(category, 0)

    @property
    def label(self) -> str:
        if self.company and self.role:
            return f"{self.company} - {self.role}"
        return self.company or self.id

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["reservations"] = {getattr(c, "value", c): n for c, n in self.reservations.items()}
        return d


@dataclass(frozen=True)
class Assignment:
    candidate_id: str
    position_id: str
    score: float
    rationale: str
    category: Category

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "position_id": self.position_id,
            "score": self.score,
            "rationale": self.rationale,
            "category": self.category.value,
        }


@dataclass
class AllocationSummary:
    candidates_processed: int = 0
    assigned: int = 0
    no_eligible_position: int = 0
    below_threshold: int = 0

    @property
    def unassigned(self) -> int:
        return self.candidates_processed - self.assigned

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["unassigned"] = self.unassigned
        return d


@dataclass
class AllocationResult:
    assignments: List[Assignment]
    summary: AllocationSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assignments": [a.to_dict() for a in self.assignments],
            "summary": self.summary.to_dict(),
        }
