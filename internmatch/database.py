"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for students, internships and allocations.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import create_engine, Column, DateTime, Float, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class Student(Base):
    """Applicant record. Insertion order (pk) is the tie-break order for equal merit."""

    __tablename__ = "students"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)
    marks = Column(Float, nullable=False)
    skills = Column(String, nullable=False)  # comma-separated
    category = Column(String, nullable=False)  # GEN, SC, ST, OBC, EWS
    location_pref = Column(String, nullable=False)
    sector_pref = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class Internship(Base):
    """Internship position with per-category reserved seats."""

    __tablename__ = "internships"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    internship_id = Column(String, nullable=False, unique=True)
    company = Column(String, nullable=True)
    role = Column(String, nullable=True)
    location = Column(String, nullable=False)
    sector = Column(String, nullable=False)
    required_skills = Column(String, nullable=False)  # comma-separated
    total_seats = Column(Integer, nullable=False)
    reservations = Column(JSON, nullable=False, default=dict)  # {"GEN": 2, "SC": 1, ...}
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class Allocation(Base):
    """One committed seat. The whole table is replaced on every run."""

    __tablename__ = "allocations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String, ForeignKey("students.student_id"), nullable=False, unique=True)
    internship_id = Column(String, ForeignKey("internships.internship_id"), nullable=False)
    score = Column(Float, nullable=False)
    reason = Column(String, nullable=False)
    category = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()
