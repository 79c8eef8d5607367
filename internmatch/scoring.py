"""
Compatibility scoring between a candidate and a position (v1).

Responsibilities:
- Compute a deterministic affinity score for one (candidate, position) pair.
- Emit a human-readable rationale listing the contributing terms.

Non-Responsibilities:
- No quota checks.
- No threshold decisions.

Invariant:
Given identical inputs, this module must always return
the same score and rationale.
"""

from typing import List, Optional, Tuple

from .config import ScoringWeights
from .models import Candidate, Position
from .normalize import contains_either, format_number, split_tags

DEFAULT_WEIGHTS = ScoringWeights()


def location_score(candidate: Candidate, position: Position, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    if contains_either(candidate.location_pref, position.location):
        return weights.location_weight
    return 0.0


def sector_score(candidate: Candidate, position: Position, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    if contains_either(candidate.sector_pref, position.sector):
        return weights.sector_weight
    return 0.0


def count_skill_matches(candidate_skills: str, required_skills: str) -> Tuple[int, int]:
    """
    Returns (matches, required_count). A candidate tag matches when it and
    any required tag contain one another.
    """
    have = split_tags(candidate_skills)
    need = split_tags(required_skills)
    matches = sum(1 for tag in have if any(contains_either(tag, req) for req in need))
    return matches, len(need)


def skill_score(candidate: Candidate, position: Position, weights: ScoringWeights = DEFAULT_WEIGHTS) -> Tuple[float, int]:
    matches, required = count_skill_matches(candidate.skills, position.required_skills)
    if required == 0 or matches == 0:
        return 0.0, 0
    cap = weights.skill_cap
    return min(cap, (matches / required) * cap), matches


def merit_score(candidate: Candidate, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    return (candidate.merit / weights.merit_max) * weights.merit_cap


def score(
    candidate: Candidate,
    position: Position,
    weights: Optional[ScoringWeights] = None,
) -> Tuple[float, str]:
    """
    Score a candidate against a position.

    Terms (reference weights, nominal total 100):
    - location preference match: 30
    - sector preference match: 25
    - share of required skills covered, capped at 35
    - merit bonus, merit/100 * 10, always applied

    Returns:
        (score, rationale) where rationale is a comma-joined list of the
        contributing terms, e.g. "Location match, 2 skill matches, Merit: 87%".
    """
    w = weights or DEFAULT_WEIGHTS
    total = 0.0
    reasons: List[str] = []

    loc = location_score(candidate, position, w)
    if loc:
        total += loc
        reasons.append("Location match")

    sec = sector_score(candidate, position, w)
    if sec:
        total += sec
        reasons.append("Sector match")

    skills, matches = skill_score(candidate, position, w)
    if skills:
        total += skills
        reasons.append(f"{matches} skill matches")

    total += merit_score(candidate, w)
    reasons.append(f"Merit: {format_number(candidate.merit)}%")

    return total, ", ".join(reasons)
