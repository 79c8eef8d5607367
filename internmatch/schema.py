from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .errors import ValidationError
from .models import CATEGORY_CODES, Candidate, Category, Position

CANDIDATE_REQUIRED_STR_FIELDS = ["id", "skills", "category", "location_pref", "sector_pref"]
CANDIDATE_OPTIONAL_STR_FIELDS = ["name"]

POSITION_REQUIRED_STR_FIELDS = ["id", "required_skills", "location", "sector"]
POSITION_OPTIONAL_STR_FIELDS = ["company", "role"]

MERIT_MIN = 0
MERIT_MAX = 100


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_count(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _check_strings(data: Mapping[str, Any], required: List[str], optional: List[str], errors: List[str]) -> None:
    for f in required:
        if f not in data or data[f] is None:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in optional:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")


def _prefix(data: Mapping[str, Any], kind: str, errors: List[str]) -> List[str]:
    ident = data.get("id") if isinstance(data, Mapping) else None
    label = f"{kind} {ident!r}" if _is_non_empty_str(ident) else kind
    return [f"{label}: {e}" for e in errors]


def validate_candidate(data: Mapping[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    if not isinstance(data, Mapping):
        return ["Candidate record must be a mapping"]

    errors: List[str] = []
    _check_strings(data, CANDIDATE_REQUIRED_STR_FIELDS, CANDIDATE_OPTIONAL_STR_FIELDS, errors)

    if "merit" not in data or data["merit"] is None:
        errors.append("Missing required field: merit")
    elif not _is_number(data["merit"]):
        errors.append("Field 'merit' must be a number")
    elif not MERIT_MIN <= data["merit"] <= MERIT_MAX:
        errors.append(f"Field 'merit' must be between {MERIT_MIN} and {MERIT_MAX}")

    category = data.get("category")
    if _is_non_empty_str(category) and category not in CATEGORY_CODES:
        errors.append(f"Field 'category' must be one of {', '.join(CATEGORY_CODES)} (got {category!r})")

    return errors


def validate_position(data: Mapping[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.

    Reservations may sum to less than total_seats; the remainder is not
    pooled into any category.
    """
    if not isinstance(data, Mapping):
        return ["Position record must be a mapping"]

    errors: List[str] = []
    _check_strings(data, POSITION_REQUIRED_STR_FIELDS, POSITION_OPTIONAL_STR_FIELDS, errors)

    total = data.get("total_seats")
    if total is None:
        errors.append("Missing required field: total_seats")
    elif not _is_count(total) or total < 0:
        errors.append("Field 'total_seats' must be a non-negative integer")
        total = None

    reservations = data.get("reservations")
    if reservations is None:
        errors.append("Missing required field: reservations")
    elif not isinstance(reservations, Mapping):
        errors.append("Field 'reservations' must be a mapping of category to seat count")
    else:
        reserved = 0
        for category, count in reservations.items():
            if category not in CATEGORY_CODES:
                errors.append(f"Unknown reservation category: {category!r}")
                continue
            if not _is_count(count) or count < 0:
                errors.append(f"Reservation for {category} must be a non-negative integer")
                continue
            reserved += count
        if total is not None and reserved > total:
            errors.append(f"Reservations ({reserved}) exceed total_seats ({total})")

    return errors


def candidate_from_dict(data: Mapping[str, Any]) -> Candidate:
    errors = validate_candidate(data)
    if errors:
        raise ValidationError(_prefix(data, "candidate", errors))
    return Candidate(
        id=data["id"],
        merit=data["merit"],
        skills=data["skills"],
        category=Category(data["category"]),
        location_pref=data["location_pref"],
        sector_pref=data["sector_pref"],
        name=data.get("name"),
    )


def position_from_dict(data: Mapping[str, Any]) -> Position:
    errors = validate_position(data)
    if errors:
        raise ValidationError(_prefix(data, "position", errors))
    return Position(
        id=data["id"],
        required_skills=data["required_skills"],
        location=data["location"],
        sector=data["sector"],
        total_seats=data["total_seats"],
        reservations={Category(c): n for c, n in data["reservations"].items()},
        company=data.get("company"),
        role=data.get("role"),
    )


def validate_records(candidates: Sequence[Mapping[str, Any]], positions: Sequence[Mapping[str, Any]]) -> List[str]:
    """Validate raw candidate and position records, including id uniqueness."""
    errors: List[str] = []
    for data in candidates:
        errors.extend(_prefix(data, "candidate", validate_candidate(data)))
    for data in positions:
        errors.extend(_prefix(data, "position", validate_position(data)))
    errors.extend(_duplicate_ids("candidate", [d.get("id") for d in candidates if isinstance(d, Mapping)]))
    errors.extend(_duplicate_ids("position", [d.get("id") for d in positions if isinstance(d, Mapping)]))
    return errors


def validate_inputs(candidates: Sequence[Candidate], positions: Sequence[Position]) -> None:
    """
    Validate built models before a run. Raises ValidationError listing every
    problem; nothing is allocated when this fails.
    """
    errors = validate_records(
        [_candidate_record(c) for c in candidates],
        [_position_record(p) for p in positions],
    )
    if errors:
        raise ValidationError(errors)


def parse_records(
    candidates: Sequence[Mapping[str, Any]], positions: Sequence[Mapping[str, Any]]
) -> Tuple[List[Candidate], List[Position]]:
    errors = validate_records(candidates, positions)
    if errors:
        raise ValidationError(errors)
    return [candidate_from_dict(d) for d in candidates], [position_from_dict(d) for d in positions]


def _candidate_record(c: Any) -> Dict[str, Any]:
    if not isinstance(c, Candidate):
        return {"id": getattr(c, "id", None)}
    return {**c.__dict__, "category": getattr(c.category, "value", c.category)}


def _position_record(p: Any) -> Dict[str, Any]:
    if not isinstance(p, Position):
        return {"id": getattr(p, "id", None)}
    d = dict(p.__dict__)
    if isinstance(p.reservations, Mapping):
        d["reservations"] = {
            (c.value if isinstance(c, Category) else c): n for c, n in p.reservations.items()
        }
    return d


def _duplicate_ids(kind: str, ids: List[Any]) -> List[str]:
    seen = set()
    dupes: List[str] = []
    for i in ids:
        if not isinstance(i, str):
            continue
        if i in seen and i not in dupes:
            dupes.append(i)
        seen.add(i)
    return [f"Duplicate {kind} id: {i!r}" for i in dupes]
