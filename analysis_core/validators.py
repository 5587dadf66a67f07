"""Construction-time checks for engine definitions.

An engine that fails these checks must never reach the scorer: the caller
gets a :class:`ConfigurationError` listing every offending ending, rule and
field instead of a silently repaired default.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

from .types import EngineDefinition, EndingDefinition, QuestionRule, ScoringConfig

__all__ = [
    "ConfigIssue",
    "ConfigurationError",
    "collect_issues",
    "validate_engine",
    "validate_scoring_config",
]


@dataclass(frozen=True)
class ConfigIssue:
    field: str
    message: str
    ending_id: Optional[str] = None
    question_id: Optional[str] = None

    def describe(self) -> str:
        where = []
        if self.ending_id is not None:
            where.append(f"ending={self.ending_id}")
        if self.question_id is not None:
            where.append(f"question={self.question_id}")
        prefix = f"[{' '.join(where)}] " if where else ""
        return f"{prefix}{self.field}: {self.message}"

    def as_dict(self) -> dict:
        return {
            "field": self.field,
            "message": self.message,
            "ending_id": self.ending_id,
            "question_id": self.question_id,
        }


class ConfigurationError(ValueError):
    """Raised when an engine definition is malformed."""

    def __init__(self, issues: List[ConfigIssue]):
        self.issues = list(issues)
        summary = "; ".join(i.describe() for i in self.issues) or "invalid engine definition"
        super().__init__(summary)


def _finite(x: object) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool) and math.isfinite(x)


_CONFIG_FIELDS = (
    "primary_point_value",
    "secondary_point_value",
    "primary_point_weight",
    "secondary_point_weight",
    "primary_distance_falloff",
    "secondary_distance_falloff",
    "primary_min_points",
    "secondary_min_points",
    "beta",
    "distance_gamma",
    "score_multiplier",
)


def validate_scoring_config(cfg: ScoringConfig, ending_id: Optional[str] = None) -> List[ConfigIssue]:
    issues: List[ConfigIssue] = []
    for name in _CONFIG_FIELDS:
        val = getattr(cfg, name)
        if not _finite(val):
            issues.append(ConfigIssue(name, f"must be a finite number, got {val!r}", ending_id))
    if issues:
        return issues

    for name in ("primary_point_value", "secondary_point_value"):
        if getattr(cfg, name) < 0:
            issues.append(ConfigIssue(name, "must be >= 0", ending_id))
    for name in ("primary_distance_falloff", "secondary_distance_falloff"):
        val = getattr(cfg, name)
        if not 0.0 <= val <= 1.0:
            issues.append(ConfigIssue(name, f"must be within [0, 1], got {val}", ending_id))
    if cfg.beta <= 0:
        issues.append(ConfigIssue("beta", f"must be > 0, got {cfg.beta}", ending_id))
    if cfg.distance_gamma <= 0:
        issues.append(ConfigIssue("distance_gamma", f"must be > 0, got {cfg.distance_gamma}", ending_id))
    return issues


def _validate_rule(rule: QuestionRule, ending_id: str) -> List[ConfigIssue]:
    issues: List[ConfigIssue] = []
    qid = rule.question_id
    if not rule.ideal_answers:
        issues.append(ConfigIssue("ideal_answers", "must not be empty", ending_id, qid))
    elif not all(_finite(v) for v in rule.ideal_answers):
        issues.append(ConfigIssue("ideal_answers", "must contain only finite numbers", ending_id, qid))
    for name in ("weight_multiplier", "distance_gamma"):
        val = getattr(rule, name)
        if val is None:
            continue
        if not _finite(val) or val <= 0:
            issues.append(ConfigIssue(name, f"must be a number > 0, got {val!r}", ending_id, qid))
    return issues


def _validate_ending(ending: EndingDefinition) -> List[ConfigIssue]:
    issues: List[ConfigIssue] = []
    seen: set[str] = set()
    for rule in ending.rules:
        if rule.question_id in seen:
            issues.append(
                ConfigIssue("question_id", "duplicate rule for question", ending.ending_id, rule.question_id)
            )
        seen.add(rule.question_id)
        issues.extend(_validate_rule(rule, ending.ending_id))
    if ending.scoring_config is not None:
        issues.extend(validate_scoring_config(ending.scoring_config, ending.ending_id))
    return issues


def collect_issues(engine: EngineDefinition) -> List[ConfigIssue]:
    """Return every configuration problem in ``engine`` without raising."""

    issues: List[ConfigIssue] = []
    if not engine.endings:
        issues.append(ConfigIssue("endings", "engine must define at least one ending"))

    seen: set[str] = set()
    for ending in engine.endings:
        if ending.ending_id in seen:
            issues.append(ConfigIssue("ending_id", "duplicate ending identifier", ending.ending_id))
        seen.add(ending.ending_id)
        issues.extend(_validate_ending(ending))

    issues.extend(validate_scoring_config(engine.config))
    return issues


def validate_engine(engine: EngineDefinition) -> EngineDefinition:
    issues = collect_issues(engine)
    if issues:
        raise ConfigurationError(issues)
    return engine
