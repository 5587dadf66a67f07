from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ScoringConfig:
    primary_point_value: float
    secondary_point_value: float
    primary_point_weight: float
    secondary_point_weight: float
    primary_distance_falloff: float
    secondary_distance_falloff: float
    primary_min_points: float
    secondary_min_points: float
    beta: float
    distance_gamma: float = 1.0
    score_multiplier: float = 1.0

    def tier(self, is_primary: bool) -> "TierSettings":
        """Return the point/weight/falloff/floor tunables for one rule tier."""

        if is_primary:
            return TierSettings(
                point_value=self.primary_point_value,
                weight=self.primary_point_weight,
                falloff=self.primary_distance_falloff,
                min_points=self.primary_min_points,
            )
        return TierSettings(
            point_value=self.secondary_point_value,
            weight=self.secondary_point_weight,
            falloff=self.secondary_distance_falloff,
            min_points=self.secondary_min_points,
        )


@dataclass(frozen=True)
class TierSettings:
    point_value: float
    weight: float
    falloff: float
    min_points: float


@dataclass(frozen=True)
class QuestionRule:
    question_id: str
    ideal_answers: Tuple[float, ...]
    is_primary: bool
    weight_multiplier: Optional[float] = None
    distance_gamma: Optional[float] = None


@dataclass(frozen=True)
class EndingDefinition:
    ending_id: str
    name: str
    rules: Tuple[QuestionRule, ...] = ()
    short_name: Optional[str] = None
    category: Optional[str] = None
    scoring_config: Optional[ScoringConfig] = None


@dataclass(frozen=True)
class EngineDefinition:
    endings: Tuple[EndingDefinition, ...]
    config: ScoringConfig
    engine_id: str = "engine"
    version: str = "1.0.0"
    name: str = ""
    is_active: bool = True

    def ending_ids(self) -> Tuple[str, ...]:
        return tuple(e.ending_id for e in self.endings)


@dataclass(frozen=True)
class Question:
    question_id: str
    min_rating: int = 1
    max_rating: int = 10
    title: str = ""

    def in_range(self, value: float) -> bool:
        return self.min_rating <= value <= self.max_rating


@dataclass(frozen=True)
class Quiz:
    quiz_id: str
    questions: Tuple[Question, ...]

    def question_ids(self) -> Tuple[str, ...]:
        return tuple(q.question_id for q in self.questions)


@dataclass(frozen=True)
class QuizResponse:
    answers: Mapping[str, object]
    response_id: str = "response"
    quiz_id: Optional[str] = None


@dataclass(frozen=True)
class AnalysisOptions:
    disable_secondary_points: bool = False
    min_percentage_threshold: float = 0.0
    enable_question_breakdown: bool = True
    max_ending_results: Optional[int] = None


@dataclass(frozen=True)
class QuestionBreakdown:
    question_id: str
    points: float
    ideal_answers: Tuple[float, ...]
    user_answer: float
    distance: float
    weight: float


@dataclass(frozen=True)
class EndingScore:
    ending_id: str
    points: float
    breakdown: Tuple[QuestionBreakdown, ...] = ()


@dataclass(frozen=True)
class RankedEnding:
    ending_id: str
    points: float
    percentage: float


@dataclass(frozen=True)
class EndingResult:
    ending_id: str
    points: float
    percentage: float
    rank: int
    is_winner: bool = False
    question_breakdown: Optional[Tuple[QuestionBreakdown, ...]] = None


@dataclass(frozen=True)
class AnalysisResult:
    ending_results: Tuple[EndingResult, ...]
    computed_at: datetime
    engine_id: str = ""
    engine_version: str = ""
    response_id: str = ""
    metadata: Dict[str, object] = field(default_factory=dict)

    def winner(self) -> Optional[EndingResult]:
        for res in self.ending_results:
            if res.is_winner:
                return res
        return None


@dataclass(frozen=True)
class EndingDistribution:
    ending_id: str
    count: int
    percentage: float
    average_points: float
    average_percentage: float


@dataclass(frozen=True)
class AnalysisSummary:
    engine_id: str
    engine_version: str
    total_responses: int
    ending_distribution: Tuple[EndingDistribution, ...]
    generated_at: datetime


@dataclass(frozen=True)
class PercentageDifference:
    ending_id: str
    local_percentage: float
    server_percentage: float
    difference: float


@dataclass(frozen=True)
class ComparisonReport:
    is_similar: bool
    differences: Tuple[PercentageDifference, ...]
