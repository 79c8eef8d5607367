# internmatch/config.py
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# --- Scoring weights (reference model, out of a nominal 100) ---

LOCATION_WEIGHT = 30.0
SECTOR_WEIGHT = 25.0
SKILL_CAP = 35.0
MERIT_CAP = 10.0
MERIT_MAX = 100.0

# --- Allocation ---

# A candidate is only placed when the best score is strictly above this.
MIN_SCORE_THRESHOLD = 20.0

# Recorded scores are rounded; selection always uses the raw score.
SCORE_PRECISION = 2

# --- Runtime ---

DEFAULT_DB_PATH = Path("data/internmatch.db")
DEFAULT_LOG_DIR = Path("logs")
RUN_LOCK_TIMEOUT_SECONDS = 30.0
DB_MAX_RETRIES = 3
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_float(name: str, default: float, minimum: Optional[float] = None) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if not math.isfinite(value) or (minimum is not None and value < minimum):
        return default
    return value


def _env_int(name: str, default: int, minimum: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_log_level(name: str, default: str) -> str:
    raw = (os.getenv(name) or "").strip().upper()
    return raw if raw in LOG_LEVELS else default


@dataclass(frozen=True)
class ScoringWeights:
    location_weight: float = LOCATION_WEIGHT
    sector_weight: float = SECTOR_WEIGHT
    skill_cap: float = SKILL_CAP
    merit_cap: float = MERIT_CAP
    merit_max: float = MERIT_MAX


@dataclass(frozen=True)
class AllocationConfig:
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    min_score: float = MIN_SCORE_THRESHOLD
    score_precision: int = SCORE_PRECISION


@dataclass(frozen=True)
class Settings:
    db_path: Path
    log_level: str
    log_dir: Path
    log_to_file: bool
    run_lock_timeout: float
    db_max_retries: int


def load_allocation_config() -> AllocationConfig:
    """Build the engine config from INTERNMATCH_* environment overrides."""
    weights = ScoringWeights(
        location_weight=_env_float("INTERNMATCH_WEIGHT_LOCATION", LOCATION_WEIGHT),
        sector_weight=_env_float("INTERNMATCH_WEIGHT_SECTOR", SECTOR_WEIGHT),
        skill_cap=_env_float("INTERNMATCH_WEIGHT_SKILL", SKILL_CAP),
        merit_cap=_env_float("INTERNMATCH_WEIGHT_MERIT", MERIT_CAP),
    )
    return AllocationConfig(
        weights=weights,
        min_score=_env_float("INTERNMATCH_MIN_SCORE", MIN_SCORE_THRESHOLD),
        score_precision=_env_int("INTERNMATCH_SCORE_PRECISION", SCORE_PRECISION, minimum=0),
    )


def load_settings() -> Settings:
    return Settings(
        db_path=Path(os.getenv("INTERNMATCH_DB") or DEFAULT_DB_PATH),
        log_level=_env_log_level("INTERNMATCH_LOG_LEVEL", "INFO"),
        log_dir=Path(os.getenv("INTERNMATCH_LOG_DIR") or DEFAULT_LOG_DIR),
        log_to_file=_env_bool("INTERNMATCH_LOG_TO_FILE", True),
        run_lock_timeout=_env_float("INTERNMATCH_RUN_LOCK_TIMEOUT", RUN_LOCK_TIMEOUT_SECONDS, minimum=0),
        db_max_retries=_env_int("INTERNMATCH_DB_MAX_RETRIES", DB_MAX_RETRIES, minimum=0),
    )
