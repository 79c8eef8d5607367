"""
Tests for database.py and the storage repository.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from internmatch.database import Allocation, Internship, Student, init_database, get_session
from internmatch.models import Assignment, Category
from internmatch.storage import (
    add_allocations,
    clear_allocations,
    list_allocations,
    load_candidates,
    load_store,
    load_positions,
    upsert_internship,
    upsert_student,
)


@pytest.fixture
def db_session(db_path):
    """Create a temporary database and return a session."""
    init_database(db_path)
    session = get_session(db_path)
    yield session
    session.close()


class TestLoadStore:
    """Test JSON input files."""

    def test_missing_lists_default_to_empty(self, tmp_path):
        path = tmp_path / "partial.json"
        path.write_text('{"students": []}')
        assert load_store(path) == {"students": [], "internships": []}

    def test_top_level_array_rejected(self, tmp_path):
        path = tmp_path / "array.json"
        path.write_text("[]")
        with pytest.raises(ValueError):
            load_store(path)

    def test_null_list_rejected(self, tmp_path):
        path = tmp_path / "null.json"
        path.write_text('{"students": null}')
        with pytest.raises(ValueError, match="students"):
            load_store(path)


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, db_path):
        assert not db_path.exists()
        init_database(db_path)
        assert db_path.exists()

    def test_init_creates_tables(self, db_session):
        assert db_session.query(Student).count() == 0
        assert db_session.query(Internship).count() == 0
        assert db_session.query(Allocation).count() == 0

    def test_init_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "test.db"
        init_database(db_path)
        assert db_path.exists()


class TestModels:
    """Test table constraints."""

    def test_student_without_required_fields_fails(self, db_session):
        db_session.add(Student(student_id="s-1"))
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_duplicate_student_id_fails(self, db_session):
        for _ in range(2):
            db_session.add(Student(
                student_id="s-1", marks=80, skills="python", category="GEN",
                location_pref="Delhi", sector_pref="Tech",
            ))
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_reservations_json_round_trip(self, db_session):
        db_session.add(Internship(
            internship_id="i-1", location="Delhi", sector="Tech", required_skills="python",
            total_seats=3, reservations={"GEN": 2, "SC": 1},
        ))
        db_session.commit()

        row = db_session.query(Internship).filter_by(internship_id="i-1").first()
        assert row.reservations == {"GEN": 2, "SC": 1}
        assert row.created_at is not None


class TestRepository:
    """Test repository helpers."""

    def test_upsert_student_statuses(self, db_session, make_candidate):
        candidate = make_candidate("s-1", name="Asha")

        assert upsert_student(db_session, candidate)["status"] == "new"
        assert upsert_student(db_session, candidate)["status"] == "no-change"

        outcome = upsert_student(db_session, make_candidate("s-1", name="Asha", merit=95))
        assert outcome["status"] == "updated"
        assert outcome["changed"] == ["marks"]

    def test_upsert_internship_statuses(self, db_session, make_position):
        position = make_position("i-1", company="Acme")
        assert upsert_internship(db_session, position)["status"] == "new"
        assert upsert_internship(db_session, position)["status"] == "no-change"

        changed = make_position("i-1", company="Acme", reservations={Category.GEN: 1, Category.SC: 0})
        assert upsert_internship(db_session, changed)["status"] == "updated"

    def test_load_preserves_insertion_order(self, db_session, make_candidate, make_position):
        for cid in ("s-3", "s-1", "s-2"):
            upsert_student(db_session, make_candidate(cid))
        for pid in ("i-b", "i-a"):
            upsert_internship(db_session, make_position(pid))
        db_session.commit()

        assert [c.id for c in load_candidates(db_session)] == ["s-3", "s-1", "s-2"]
        assert [p.id for p in load_positions(db_session)] == ["i-b", "i-a"]

    def test_loaded_models_use_categories(self, db_session, make_candidate, make_position):
        upsert_student(db_session, make_candidate("s-1", category=Category.OBC))
        upsert_internship(db_session, make_position("i-1", reservations={Category.OBC: 1}))
        db_session.commit()

        assert load_candidates(db_session)[0].category is Category.OBC
        assert load_positions(db_session)[0].reserved_for(Category.OBC) == 1

    def test_clear_and_add_allocations(self, db_session, make_candidate, make_position):
        upsert_student(db_session, make_candidate("s-1", name="Asha"))
        upsert_internship(db_session, make_position("i-1", company="Acme", role="Data Intern"))
        add_allocations(db_session, [
            Assignment("s-1", "i-1", 81.5, "Location match, Merit: 90%", Category.GEN),
        ])
        db_session.commit()

        rows = list_allocations(db_session)
        assert rows == [{
            "student_id": "s-1",
            "student_name": "Asha",
            "internship_id": "i-1",
            "company": "Acme",
            "role": "Data Intern",
            "sector": "Tech",
            "score": 81.5,
            "reason": "Location match, Merit: 90%",
            "category": "GEN",
        }]

        assert clear_allocations(db_session) == 1
        db_session.commit()
        assert list_allocations(db_session) == []
