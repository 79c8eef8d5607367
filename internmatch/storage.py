"""
Students, internships and allocations repository.

Responsibilities:
- Read and write rows through a caller-owned SQLAlchemy session.
- Load and save the JSON record files used by the CLI.

Non-Responsibilities:
- No commits; the caller owns the transaction.
- No validation or allocation decisions.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .database import Allocation, Internship, Student
from .models import Assignment, Candidate, Position


def load_store(path: Path) -> Dict[str, Any]:
    """Read a {"students": [...], "internships": [...]} JSON file."""
    with path.open("r", encoding="utf-8") as f:
        content = f.read().strip()
    if not content:
        return {"students": [], "internships": []}
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object with 'students' and 'internships' lists")
    for key in ("students", "internships"):
        data.setdefault(key, [])
        if not isinstance(data[key], list):
            raise ValueError(f"'{key}' must be a list")
    return data


def save_store(path: Path, store: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(store, f, indent=2, ensure_ascii=False)


def diff_dict(old: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    changed = {}
    keys = set(old.keys()) | set(new.keys())
    for k in keys:
        ov = old.get(k)
        nv = new.get(k)
        if ov != nv:
            changed[k] = {"old": ov, "new": nv}
    return changed


def _student_fields(candidate: Candidate) -> Dict[str, Any]:
    return {
        "name": candidate.name,
        "marks": float(candidate.merit),
        "skills": candidate.skills,
        "category": candidate.category.value,
        "location_pref": candidate.location_pref,
        "sector_pref": candidate.sector_pref,
    }


def _internship_fields(position: Position) -> Dict[str, Any]:
    return {
        "company": position.company,
        "role": position.role,
        "location": position.location,
        "sector": position.sector,
        "required_skills": position.required_skills,
        "total_seats": position.total_seats,
        "reservations": {c.value: n for c, n in position.reservations.items()},
    }


def _upsert(session, model, key_field: str, key: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    row = session.query(model).filter(getattr(model, key_field) == key).first()
    if row is None:
        session.add(model(**{key_field: key}, **fields))
        return {"status": "new"}
    changed = diff_dict({k: getattr(row, k) for k in fields}, fields)
    if not changed:
        return {"status": "no-change"}
    for k, v in fields.items():
        setattr(row, k, v)
    return {"status": "updated", "changed": sorted(changed)}


def upsert_student(session, candidate: Candidate) -> Dict[str, Any]:
    return _upsert(session, Student, "student_id", candidate.id, _student_fields(candidate))


def upsert_internship(session, position: Position) -> Dict[str, Any]:
    return _upsert(session, Internship, "internship_id", position.id, _internship_fields(position))


def load_candidates(session) -> List[Candidate]:
    """All students as candidates, in insertion order."""
    return [
        Candidate(
            id=s.student_id,
            merit=s.marks,
            skills=s.skills,
            category=s.category,
            location_pref=s.location_pref,
            sector_pref=s.sector_pref,
            name=s.name,
        )
        for s in session.query(Student).order_by(Student.pk).all()
    ]


def load_positions(session) -> List[Position]:
    """All internships as positions, in insertion order."""
    return [
        Position(
            id=i.internship_id,
            required_skills=i.required_skills,
            location=i.location,
            sector=i.sector,
            total_seats=i.total_seats,
            reservations=dict(i.reservations or {}),
            company=i.company,
            role=i.role,
        )
        for i in session.query(Internship).order_by(Internship.pk).all()
    ]


def clear_allocations(session) -> int:
    """Delete every stored allocation. Returns the number removed."""
    removed = session.query(Allocation).delete(synchronize_session=False)
    session.flush()
    return removed


def add_allocations(session, assignments: Iterable[Assignment]) -> int:
    rows = [
        Allocation(
            student_id=a.candidate_id,
            internship_id=a.position_id,
            score=a.score,
            reason=a.rationale,
            category=a.category.value,
        )
        for a in assignments
    ]
    session.add_all(rows)
    session.flush()
    return len(rows)


def list_allocations(session) -> List[Dict[str, Any]]:
    """Allocation report rows joined with student and internship details."""
    query = (
        session.query(Allocation, Student, Internship)
        .join(Student, Student.student_id == Allocation.student_id)
        .join(Internship, Internship.internship_id == Allocation.internship_id)
        .order_by(Allocation.id)
    )
    return [
        {
            "student_id": alloc.student_id,
            "student_name": student.name,
            "internship_id": alloc.internship_id,
            "company": internship.company,
            "role": internship.role,
            "sector": internship.sector,
            "score": alloc.score,
            "reason": alloc.reason,
            "category": alloc.category,
        }
        for alloc, student, internship in query.all()
    ]
