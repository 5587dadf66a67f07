"""Per-rule and per-ending scoring for the analysis engine.

Each :class:`~analysis_core.types.QuestionRule` awards points for how close an
answer lands to the rule's nearest ideal answer.  Points decay geometrically
with distance::

    retain       = (1 - falloff) ** (distance ** gamma)
    contribution = max(min_points, point_value * weight * retain * multiplier)

Everything here is a pure function of its inputs so the same engine/response
pair always yields bit-identical totals, whichever thread computes them.
"""
from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, Mapping, Optional

from . import config
from .types import (
    EndingDefinition,
    EndingScore,
    EngineDefinition,
    QuestionBreakdown,
    QuestionRule,
    QuizResponse,
    ScoringConfig,
)

__all__ = [
    "answer_value",
    "nearest_distance",
    "retained_fraction",
    "rule_contribution",
    "score_ending",
    "score",
    "score_with_breakdown",
]

log = logging.getLogger(__name__)


def _emit_trace(**values: object) -> None:
    if not config.DEBUG_TRACE:
        return
    ordered = [f"{key}={values[key]}" for key in config.TRACE_FIELDS if key in values]
    if ordered:
        log.info("trace %s", " ".join(ordered))


def answer_value(raw: object) -> Optional[float]:
    """Return ``raw`` as a float, or ``None`` if it is not a usable rating.

    Text answers, booleans and non-finite numbers count as unanswered.
    """

    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    val = float(raw)
    if not math.isfinite(val):
        return None
    return val


def nearest_distance(answer: float, ideal_answers: Iterable[float]) -> float:
    """Absolute distance from ``answer`` to the closest ideal answer."""

    return min(abs(answer - float(v)) for v in ideal_answers)


def retained_fraction(distance: float, falloff: float, gamma: float = 1.0) -> float:
    """Share of the full point value kept at ``distance`` from the ideal.

    An exact match always keeps everything.  A falloff of ``0`` means only
    exact matches score; a falloff of ``1`` zeroes any miss.
    """

    if distance <= 0:
        return 1.0
    if falloff <= 0:
        return 0.0
    return (1.0 - falloff) ** (distance ** gamma)


def _rule_weight(rule: QuestionRule, cfg: ScoringConfig) -> float:
    weight = cfg.tier(rule.is_primary).weight
    if rule.weight_multiplier is not None:
        weight = weight * rule.weight_multiplier
    return weight


def _score_rule(
    rule: QuestionRule,
    answer: float,
    cfg: ScoringConfig,
    ending_id: Optional[str] = None,
) -> QuestionBreakdown:
    tier = cfg.tier(rule.is_primary)
    gamma = rule.distance_gamma if rule.distance_gamma is not None else cfg.distance_gamma
    weight = _rule_weight(rule, cfg)

    distance = nearest_distance(answer, rule.ideal_answers)
    retain = retained_fraction(distance, tier.falloff, gamma)
    points = max(tier.min_points, tier.point_value * weight * retain * cfg.score_multiplier)
    _emit_trace(
        ending_id=ending_id,
        question_id=rule.question_id,
        answer=answer,
        distance=distance,
        retain=retain,
        contribution=points,
    )
    return QuestionBreakdown(
        question_id=rule.question_id,
        points=points,
        ideal_answers=tuple(rule.ideal_answers),
        user_answer=answer,
        distance=distance,
        weight=weight,
    )


def rule_contribution(rule: QuestionRule, answer: object, cfg: ScoringConfig) -> float:
    """Points a single rule adds for ``answer`` (0 when unanswered)."""

    val = answer_value(answer)
    if val is None:
        return 0.0
    return _score_rule(rule, val, cfg).points


def score_ending(
    ending: EndingDefinition,
    answers: Mapping[str, object],
    cfg: ScoringConfig,
    *,
    disable_secondary: bool = False,
) -> EndingScore:
    total = 0.0
    breakdown = []
    for rule in ending.rules:
        if disable_secondary and not rule.is_primary:
            continue
        val = answer_value(answers.get(rule.question_id))
        if val is None:
            continue
        item = _score_rule(rule, val, cfg, ending.ending_id)
        total += item.points
        breakdown.append(item)
    return EndingScore(ending_id=ending.ending_id, points=total, breakdown=tuple(breakdown))


def score_with_breakdown(
    engine: EngineDefinition,
    response: QuizResponse,
    *,
    disable_secondary: bool = False,
) -> Dict[str, EndingScore]:
    """Score every ending, keeping the per-question breakdown."""

    out: Dict[str, EndingScore] = {}
    for ending in engine.endings:
        cfg = ending.scoring_config or engine.config
        out[ending.ending_id] = score_ending(
            ending, response.answers, cfg, disable_secondary=disable_secondary
        )
    return out


def score(engine: EngineDefinition, response: QuizResponse) -> Dict[str, float]:
    """Raw points per ending id, in engine order."""

    scored = score_with_breakdown(engine, response)
    return {eid: es.points for eid, es in scored.items()}
