"""
Allocation driver.

Responsibilities:
- Validate the full input before any seat is touched.
- Visit candidates once, highest merit first.
- Give each candidate the best-scoring position that still has a seat in
  their category, if that score clears the threshold.

Non-Responsibilities:
- No persistence; callers clear and store assignments.
- No global optimisation. This is a single greedy pass with no exchange
  step, so an earlier candidate can take a seat that a later one would
  have valued more.

Invariant:
Given identical inputs in identical order, the assignments are identical.
"""

from typing import List, Optional, Sequence, Tuple

from .config import AllocationConfig
from .ledger import QuotaLedger
from .logger import get_logger
from .models import AllocationResult, AllocationSummary, Assignment, Candidate, Position
from .normalize import round_half_up
from .schema import validate_inputs
from .scoring import score

NO_ELIGIBLE_POSITION = "no_eligible_position"
BELOW_THRESHOLD = "below_threshold"


def order_candidates(candidates: Sequence[Candidate]) -> List[Candidate]:
    """Merit descending; equal merits keep their input order."""
    return sorted(candidates, key=lambda c: c.merit, reverse=True)


def eligible_positions(candidate: Candidate, positions: Sequence[Position], ledger: QuotaLedger) -> List[Position]:
    return [p for p in positions if ledger.has_room(p.id, candidate.category)]


def best_position(
    candidate: Candidate,
    positions: Sequence[Position],
    config: AllocationConfig,
) -> Optional[Tuple[Position, float, str]]:
    """
    Highest-scoring position for a candidate. Ties go to the position seen
    first; a later position must score strictly higher to replace it.
    """
    best: Optional[Tuple[Position, float, str]] = None
    for position in positions:
        value, rationale = score(candidate, position, config.weights)
        if best is None or value > best[1]:
            best = (position, value, rationale)
    return best


def allocate(
    candidates: Sequence[Candidate],
    positions: Sequence[Position],
    config: Optional[AllocationConfig] = None,
) -> AllocationResult:
    """
    Run one allocation pass.

    Raises:
        ValidationError: If any record is malformed. Raised before the
            ledger is built, so nothing is allocated.
        InvariantViolation: If a quota counter would go negative.
    """
    logger = get_logger()
    config = config or AllocationConfig()

    validate_inputs(candidates, positions)

    ledger = QuotaLedger.initialize(positions)
    summary = AllocationSummary()
    assignments: List[Assignment] = []

    logger.info(
        f"Processing {len(candidates)} candidates and {len(positions)} positions",
        min_score=config.min_score,
    )

    for candidate in order_candidates(candidates):
        summary.candidates_processed += 1
        logger.record_candidate_processed()

        eligible = eligible_positions(candidate, positions, ledger)
        if not eligible:
            summary.no_eligible_position += 1
            logger.record_unassigned(NO_ELIGIBLE_POSITION)
            logger.debug(
                "No position with room",
                candidate_id=candidate.id,
                category=candidate.category.value,
            )
            continue

        position, value, rationale = best_position(candidate, eligible, config)
        if value <= config.min_score:
            summary.below_threshold += 1
            logger.record_unassigned(BELOW_THRESHOLD)
            logger.debug(
                "Best score below threshold",
                candidate_id=candidate.id,
                position_id=position.id,
                score=value,
            )
            continue

        assignment = Assignment(
            candidate_id=candidate.id,
            position_id=position.id,
            score=round_half_up(value, config.score_precision),
            rationale=rationale,
            category=candidate.category,
        )
        ledger.consume(position.id, candidate.category)
        assignments.append(assignment)
        summary.assigned += 1
        logger.record_assignment(position.id)
        logger.info(
            f"Allocated {candidate.name or candidate.id} to {position.label} (Score: {value})",
            candidate_id=candidate.id,
            position_id=position.id,
        )

    logger.debug("Final quota ledger", remaining=ledger.snapshot())
    logger.info(
        f"Allocation complete. {summary.assigned} candidates allocated.",
        processed=summary.candidates_processed,
        no_eligible_position=summary.no_eligible_position,
        below_threshold=summary.below_threshold,
    )
    return AllocationResult(assignments=assignments, summary=summary)
