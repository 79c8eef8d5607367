"""
Pytest configuration and shared fixtures.
"""

import pytest
import json
from pathlib import Path
from typing import Dict, Any

from internmatch.logger import get_logger, reset_logger
from internmatch.models import Candidate, Category, Position


@pytest.fixture(autouse=True)
def quiet_logger():
    """Fresh global logger per test with no console or file output."""
    reset_logger()
    logger = get_logger(enable_file=False, enable_console=False)
    yield logger
    reset_logger()


@pytest.fixture
def make_candidate():
    """Factory for candidates with sensible defaults."""
    def _make(id: str = "c1", **overrides) -> Candidate:
        fields = {
            "merit": 80,
            "skills": "python",
            "category": Category.GEN,
            "location_pref": "Delhi",
            "sector_pref": "Tech",
        }
        fields.update(overrides)
        return Candidate(id=id, **fields)
    return _make


@pytest.fixture
def make_position():
    """Factory for positions with sensible defaults."""
    def _make(id: str = "p1", **overrides) -> Position:
        fields = {
            "required_skills": "python",
            "location": "Delhi",
            "sector": "Tech",
            "total_seats": 1,
            "reservations": {Category.GEN: 1},
        }
        fields.update(overrides)
        return Position(id=id, **fields)
    return _make


@pytest.fixture
def valid_student_record() -> Dict[str, Any]:
    """Valid student (candidate) record."""
    return {
        "id": "s-001",
        "name": "Asha Verma",
        "merit": 87,
        "skills": "python, sql",
        "category": "GEN",
        "location_pref": "Delhi",
        "sector_pref": "Tech",
    }


@pytest.fixture
def valid_internship_record() -> Dict[str, Any]:
    """Valid internship (position) record."""
    return {
        "id": "i-101",
        "company": "Acme Analytics",
        "role": "Data Intern",
        "required_skills": "python, react",
        "location": "Delhi",
        "sector": "Tech",
        "total_seats": 2,
        "reservations": {"GEN": 1, "SC": 1},
    }


@pytest.fixture
def sample_records() -> Dict[str, Any]:
    """A small but complete input file payload."""
    return {
        "students": [
            {"id": "s-1", "name": "Asha", "merit": 90, "skills": "python,sql", "category": "GEN",
             "location_pref": "Delhi", "sector_pref": "Tech"},
            {"id": "s-2", "name": "Ravi", "merit": 85, "skills": "react", "category": "OBC",
             "location_pref": "Bangalore", "sector_pref": "Tech"},
            {"id": "s-3", "name": "Meena", "merit": 70, "skills": "excel", "category": "SC",
             "location_pref": "Pune", "sector_pref": "Retail"},
        ],
        "internships": [
            {"id": "i-1", "company": "Acme", "role": "Data Intern", "required_skills": "python,react",
             "location": "Delhi", "sector": "Tech", "total_seats": 1, "reservations": {"GEN": 1, "SC": 0}},
            {"id": "i-2", "company": "Bright", "role": "Frontend Intern", "required_skills": "react",
             "location": "Bangalore", "sector": "Tech", "total_seats": 1, "reservations": {"OBC": 1}},
        ],
    }


@pytest.fixture
def input_file(tmp_path, sample_records) -> Path:
    """Write sample_records to a JSON file."""
    path = tmp_path / "input.json"
    path.write_text(json.dumps(sample_records))
    return path


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "internmatch.db"
