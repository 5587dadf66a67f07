from __future__ import annotations

import pytest

from analysis_core.types import (
    EndingDefinition,
    EngineDefinition,
    Question,
    QuestionRule,
    Quiz,
    QuizResponse,
    ScoringConfig,
)


def make_config(**overrides: float) -> ScoringConfig:
    values = dict(
        primary_point_value=10.0,
        secondary_point_value=5.0,
        primary_point_weight=1.0,
        secondary_point_weight=1.0,
        primary_distance_falloff=0.1,
        secondary_distance_falloff=0.5,
        primary_min_points=0.0,
        secondary_min_points=0.0,
        beta=1.0,
        distance_gamma=1.0,
        score_multiplier=1.0,
    )
    values.update(overrides)
    return ScoringConfig(**values)


def build_scenario_engine(beta: float = 1.0) -> EngineDefinition:
    """Two endings pulling the same question in opposite directions."""

    return EngineDefinition(
        endings=(
            EndingDefinition("A", "Ending A", (QuestionRule("Q1", (8,), True),)),
            EndingDefinition("B", "Ending B", (QuestionRule("Q1", (2,), True),)),
        ),
        config=make_config(beta=beta),
        engine_id="scenario",
    )


def build_synthetic_quiz(questions: int = 6, min_rating: int = 1, max_rating: int = 10) -> Quiz:
    return Quiz(
        quiz_id="synthetic-quiz",
        questions=tuple(
            Question(f"q{idx}", min_rating, max_rating, f"Question {idx}") for idx in range(1, questions + 1)
        ),
    )


def build_synthetic_engine(
    *,
    endings: tuple[str, ...] = ("dreamer", "maker", "performer"),
    questions: int = 6,
    beta: float = 1.0,
) -> EngineDefinition:
    """Deterministic engine: each ending wants a different band of the scale.

    Ending ``i`` treats every question ``q(i+1)``..``q(n)`` as secondary and
    its own question ``q(i+1)`` as primary, with ideals spread over 1..10.
    """

    defs = []
    for idx, eid in enumerate(endings):
        ideal = float(2 + (idx * 3) % 9)
        rules = [QuestionRule(f"q{idx + 1}", (ideal, ideal + 1), True)]
        for q in range(idx + 2, questions + 1):
            rules.append(QuestionRule(f"q{q}", (ideal,), False))
        defs.append(EndingDefinition(eid, eid.title(), tuple(rules)))
    return EngineDefinition(endings=tuple(defs), config=make_config(beta=beta), engine_id="synthetic", version="2.1.0")


def build_synthetic_responses(count: int = 8, questions: int = 6) -> list[QuizResponse]:
    out = []
    for r in range(count):
        answers = {f"q{q}": 1 + (r * 3 + q * 2) % 10 for q in range(1, questions + 1)}
        out.append(QuizResponse(answers=answers, response_id=f"resp-{r}", quiz_id="synthetic-quiz"))
    return out


@pytest.fixture
def scenario_engine() -> EngineDefinition:
    return build_scenario_engine()


@pytest.fixture
def synthetic_engine() -> EngineDefinition:
    return build_synthetic_engine()


@pytest.fixture
def synthetic_quiz() -> Quiz:
    return build_synthetic_quiz()
