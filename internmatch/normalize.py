from decimal import Decimal, ROUND_HALF_UP
from typing import List


def split_tags(raw: str) -> List[str]:
    """Split a comma-separated tag string into trimmed, lower-cased unique tags."""
    tags: List[str] = []
    seen = set()
    for part in (raw or "").split(","):
        tag = part.strip().lower()
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags


def contains_either(a: str, b: str) -> bool:
    # Substring containment in either direction, case-insensitive.
    left = (a or "").lower()
    right = (b or "").lower()
    return left in right or right in left


def format_number(value: float) -> str:
    """Render 87.0 as '87' and 87.5 as '87.5'."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def round_half_up(value: float, precision: int) -> float:
    """Round halves away from zero: 77.125 -> 77.13 at precision 2."""
    step = Decimal(1).scaleb(-precision)
    return float(Decimal(repr(value)).quantize(step, rounding=ROUND_HALF_UP))
