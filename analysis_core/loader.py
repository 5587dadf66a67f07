"""Build engine, quiz and response values from plain JSON-like data.

Keys may be snake_case or the camelCase used by stored engine payloads
(``endingId``, ``idealAnswers``, ``primaryPointValue`` ...).  Engines built
here are validated before they are returned.
"""
from __future__ import annotations

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from . import config
from .types import (
    AnalysisOptions,
    AnalysisResult,
    EndingDefinition,
    EndingResult,
    EngineDefinition,
    Question,
    QuestionBreakdown,
    QuestionRule,
    Quiz,
    QuizResponse,
    ScoringConfig,
)
from .validators import ConfigIssue, ConfigurationError, validate_engine

_CAMEL_RX = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL_RX.sub("_", key).lower()


def _norm(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_snake(str(k)): v for k, v in data.items()}


def load_json(path: str | Path) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


_SCORING_FIELDS = (
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


def scoring_config_from_dict(
    data: Optional[Mapping[str, Any]],
    base: Optional[ScoringConfig] = None,
) -> ScoringConfig:
    """Overlay ``data`` on ``base`` (the env-driven defaults when omitted)."""

    cfg = base or config.default_scoring_config()
    values = {name: getattr(cfg, name) for name in _SCORING_FIELDS}
    for key, val in _norm(data or {}).items():
        if key in values and val is not None:
            values[key] = val
    return ScoringConfig(**values)


def rule_from_dict(data: Mapping[str, Any]) -> QuestionRule:
    d = _norm(data)
    ideal = d.get("ideal_answers") or ()
    return QuestionRule(
        question_id=str(d["question_id"]),
        ideal_answers=tuple(ideal),
        is_primary=bool(d.get("is_primary", False)),
        weight_multiplier=d.get("weight_multiplier"),
        distance_gamma=d.get("distance_gamma"),
    )


def ending_from_dict(data: Mapping[str, Any], engine_cfg: Optional[ScoringConfig] = None) -> EndingDefinition:
    d = _norm(data)
    rules = d.get("rules", d.get("question_rules")) or ()
    custom = d.get("scoring_config", d.get("custom_scoring_config"))
    return EndingDefinition(
        ending_id=str(d["ending_id"]),
        name=str(d.get("name") or d.get("full_name") or d["ending_id"]),
        rules=tuple(rule_from_dict(r) for r in rules),
        short_name=d.get("short_name"),
        category=d.get("category"),
        scoring_config=scoring_config_from_dict(custom, engine_cfg) if custom else None,
    )


def engine_from_dict(data: Mapping[str, Any]) -> EngineDefinition:
    """Build and validate an engine definition."""

    d = _norm(data)
    try:
        cfg = scoring_config_from_dict(d.get("config", d.get("scoring_config")))
        endings = tuple(ending_from_dict(e, cfg) for e in d.get("endings") or ())
    except (KeyError, TypeError, AttributeError) as exc:
        raise ConfigurationError([ConfigIssue("engine", f"malformed engine payload: {exc!r}")]) from exc
    engine = EngineDefinition(
        endings=endings,
        config=cfg,
        engine_id=str(d.get("engine_id", d.get("id", "engine"))),
        version=str(d.get("version", "1.0.0")),
        name=str(d.get("name", "")),
        is_active=bool(d.get("is_active", True)),
    )
    return validate_engine(engine)


def quiz_from_dict(data: Mapping[str, Any]) -> Quiz:
    d = _norm(data)
    questions = []
    for q in d.get("questions") or ():
        qd = _norm(q)
        questions.append(
            Question(
                question_id=str(qd.get("question_id", qd.get("id"))),
                min_rating=int(qd.get("min_rating", 1)),
                max_rating=int(qd.get("max_rating", 10)),
                title=str(qd.get("title", "")),
            )
        )
    return Quiz(quiz_id=str(d.get("quiz_id", d.get("id", "quiz"))), questions=tuple(questions))


def response_from_dict(data: Mapping[str, Any]) -> QuizResponse:
    """Accept ``answers`` either as a mapping or as ``[{questionId, value}]``."""

    d = _norm(data)
    raw = d.get("answers") or {}
    if isinstance(raw, Mapping):
        answers = {str(k): v for k, v in raw.items()}
    else:
        answers = {}
        for row in raw:
            rd = _norm(row)
            answers[str(rd["question_id"])] = rd.get("value")
    return QuizResponse(
        answers=answers,
        response_id=str(d.get("response_id", d.get("id", "response"))),
        quiz_id=d.get("quiz_id"),
    )


def options_from_dict(data: Optional[Mapping[str, Any]]) -> AnalysisOptions:
    base = config.default_options()
    d = _norm(data or {})
    max_results = d.get("max_ending_results", base.max_ending_results)
    return AnalysisOptions(
        disable_secondary_points=bool(d.get("disable_secondary_points", base.disable_secondary_points)),
        min_percentage_threshold=float(d.get("min_percentage_threshold", base.min_percentage_threshold)),
        enable_question_breakdown=bool(d.get("enable_question_breakdown", base.enable_question_breakdown)),
        max_ending_results=int(max_results) if max_results else None,
    )


def _breakdown_from_dict(data: Mapping[str, Any]) -> QuestionBreakdown:
    d = _norm(data)
    return QuestionBreakdown(
        question_id=str(d["question_id"]),
        points=float(d["points"]),
        ideal_answers=tuple(d.get("ideal_answers") or ()),
        user_answer=float(d["user_answer"]),
        distance=float(d["distance"]),
        weight=float(d["weight"]),
    )


def result_from_dict(data: Mapping[str, Any]) -> AnalysisResult:
    """Rebuild a stored result (inverse of ``result_export.result_to_dict``)."""

    d = _norm(data)
    ending_results = []
    for idx, row in enumerate(d.get("ending_results") or (), start=1):
        rd = _norm(row)
        breakdown = rd.get("question_breakdown")
        ending_results.append(
            EndingResult(
                ending_id=str(rd["ending_id"]),
                points=float(rd["points"]),
                percentage=float(rd["percentage"]),
                rank=int(rd.get("rank", idx)),
                is_winner=bool(rd.get("is_winner", False)),
                question_breakdown=(
                    tuple(_breakdown_from_dict(b) for b in breakdown) if breakdown is not None else None
                ),
            )
        )
    computed = d.get("computed_at")
    return AnalysisResult(
        ending_results=tuple(ending_results),
        computed_at=datetime.fromisoformat(computed) if isinstance(computed, str) else computed,
        engine_id=str(d.get("engine_id", "")),
        engine_version=str(d.get("engine_version", "")),
        response_id=str(d.get("response_id", "")),
        metadata=dict(d.get("metadata") or {}),
    )
