from __future__ import annotations
import os

from .types import AnalysisOptions, ScoringConfig


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


PRIMARY_POINT_VALUE: float = 10.0
SECONDARY_POINT_VALUE: float = 5.0
PRIMARY_POINT_WEIGHT: float = 1.0
SECONDARY_POINT_WEIGHT: float = 1.0
PRIMARY_DISTANCE_FALLOFF: float = 0.1
SECONDARY_DISTANCE_FALLOFF: float = 0.5
PRIMARY_MIN_POINTS: float = 0.0
SECONDARY_MIN_POINTS: float = 0.0
BETA: float = 0.8
DISTANCE_GAMMA: float = 1.0
SCORE_MULTIPLIER: float = 1.0

DISABLE_SECONDARY_POINTS: bool = False
MIN_PERCENTAGE_THRESHOLD: float = 0.0
ENABLE_QUESTION_BREAKDOWN: bool = True
MAX_ENDING_RESULTS: int = 0  # 0 = keep every ending

COMPARE_THRESHOLD: float = 10.0
BATCH_MAX_WORKERS: int = 4

DEBUG_TRACE: bool = False
EXPORT_ENABLED: bool = True
TRACE_FIELDS: tuple[str, ...] = (
    "ending_id",
    "question_id",
    "answer",
    "distance",
    "retain",
    "contribution",
)
# // env overrides for staging/ops; engine calls still take explicit values.
PRIMARY_POINT_VALUE = _env_float("ANALYSIS_PRIMARY_POINT_VALUE", PRIMARY_POINT_VALUE)
SECONDARY_POINT_VALUE = _env_float("ANALYSIS_SECONDARY_POINT_VALUE", SECONDARY_POINT_VALUE)
PRIMARY_POINT_WEIGHT = _env_float("ANALYSIS_PRIMARY_POINT_WEIGHT", PRIMARY_POINT_WEIGHT)
SECONDARY_POINT_WEIGHT = _env_float("ANALYSIS_SECONDARY_POINT_WEIGHT", SECONDARY_POINT_WEIGHT)
PRIMARY_DISTANCE_FALLOFF = _env_float("ANALYSIS_PRIMARY_DISTANCE_FALLOFF", PRIMARY_DISTANCE_FALLOFF)
SECONDARY_DISTANCE_FALLOFF = _env_float("ANALYSIS_SECONDARY_DISTANCE_FALLOFF", SECONDARY_DISTANCE_FALLOFF)
PRIMARY_MIN_POINTS = _env_float("ANALYSIS_PRIMARY_MIN_POINTS", PRIMARY_MIN_POINTS)
SECONDARY_MIN_POINTS = _env_float("ANALYSIS_SECONDARY_MIN_POINTS", SECONDARY_MIN_POINTS)
BETA = _env_float("ANALYSIS_BETA", BETA)
DISTANCE_GAMMA = _env_float("ANALYSIS_DISTANCE_GAMMA", DISTANCE_GAMMA)
SCORE_MULTIPLIER = _env_float("ANALYSIS_SCORE_MULTIPLIER", SCORE_MULTIPLIER)
DISABLE_SECONDARY_POINTS = _env_bool("ANALYSIS_DISABLE_SECONDARY_POINTS", DISABLE_SECONDARY_POINTS)
MIN_PERCENTAGE_THRESHOLD = _env_float("ANALYSIS_MIN_PERCENTAGE_THRESHOLD", MIN_PERCENTAGE_THRESHOLD)
ENABLE_QUESTION_BREAKDOWN = _env_bool("ANALYSIS_ENABLE_QUESTION_BREAKDOWN", ENABLE_QUESTION_BREAKDOWN)
MAX_ENDING_RESULTS = _env_int("ANALYSIS_MAX_ENDING_RESULTS", MAX_ENDING_RESULTS)
BATCH_MAX_WORKERS = _env_int("BATCH_MAX_WORKERS", BATCH_MAX_WORKERS)
DEBUG_TRACE = _env_bool("DEBUG_TRACE", False)
EXPORT_ENABLED = _env_bool("EXPORT_ENABLED", EXPORT_ENABLED)


def default_scoring_config() -> ScoringConfig:
    return ScoringConfig(
        primary_point_value=PRIMARY_POINT_VALUE,
        secondary_point_value=SECONDARY_POINT_VALUE,
        primary_point_weight=PRIMARY_POINT_WEIGHT,
        secondary_point_weight=SECONDARY_POINT_WEIGHT,
        primary_distance_falloff=PRIMARY_DISTANCE_FALLOFF,
        secondary_distance_falloff=SECONDARY_DISTANCE_FALLOFF,
        primary_min_points=PRIMARY_MIN_POINTS,
        secondary_min_points=SECONDARY_MIN_POINTS,
        beta=BETA,
        distance_gamma=DISTANCE_GAMMA,
        score_multiplier=SCORE_MULTIPLIER,
    )


def default_options() -> AnalysisOptions:
    return AnalysisOptions(
        disable_secondary_points=DISABLE_SECONDARY_POINTS,
        min_percentage_threshold=MIN_PERCENTAGE_THRESHOLD,
        enable_question_breakdown=ENABLE_QUESTION_BREAKDOWN,
        max_ending_results=MAX_ENDING_RESULTS if MAX_ENDING_RESULTS > 0 else None,
    )
