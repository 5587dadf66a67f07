# analysis_core/engine.py
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence
import logging

from . import config
from .ranking import normalize, rank_endings
from .scoring import answer_value, score_with_breakdown
from .types import (
    AnalysisOptions,
    AnalysisResult,
    AnalysisSummary,
    ComparisonReport,
    EndingDistribution,
    EngineDefinition,
    PercentageDifference,
    Quiz,
    QuizResponse,
)
from .validators import ConfigurationError, validate_engine


log = logging.getLogger(__name__)


class AnalysisError(RuntimeError):
    """Raised when an analysis cannot be run for a valid engine definition."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_engine(engine: EngineDefinition) -> None:
    try:
        validate_engine(engine)
    except ConfigurationError as exc:
        log.warning("engine %s rejected: %s", engine.engine_id, exc)
        raise
    if not engine.is_active:
        raise AnalysisError(f"analysis engine {engine.engine_id} is not active")


def _restrict_to_quiz(response: QuizResponse, quiz: Optional[Quiz]) -> QuizResponse:
    if quiz is None:
        return response
    known = set(quiz.question_ids())
    answers = {qid: val for qid, val in response.answers.items() if qid in known}
    return QuizResponse(answers=answers, response_id=response.response_id, quiz_id=response.quiz_id)


def _analyze(
    engine: EngineDefinition,
    quiz: Optional[Quiz],
    response: QuizResponse,
    opts: AnalysisOptions,
    now: Optional[datetime],
) -> AnalysisResult:
    filtered = _restrict_to_quiz(response, quiz)
    scored = score_with_breakdown(engine, filtered, disable_secondary=opts.disable_secondary_points)
    raw = {eid: es.points for eid, es in scored.items()}
    ending_results = rank_endings(normalize(raw, engine.config.beta), opts, scored)

    scored_answers = sum(1 for v in filtered.answers.values() if answer_value(v) is not None)
    metadata: Dict[str, object] = {
        "total_questions": len(quiz.questions) if quiz is not None else None,
        "answered_questions": len(response.answers),
        "scored_answers": scored_answers,
    }
    result = AnalysisResult(
        ending_results=tuple(ending_results),
        computed_at=now or _utcnow(),
        engine_id=engine.engine_id,
        engine_version=engine.version,
        response_id=response.response_id,
        metadata=metadata,
    )
    winner = result.winner()
    log.debug(
        "analysed response %s with engine %s@%s: winner=%s",
        response.response_id,
        engine.engine_id,
        engine.version,
        winner.ending_id if winner else None,
    )
    return result


def analyze_response(
    engine: EngineDefinition,
    quiz: Optional[Quiz],
    response: QuizResponse,
    options: Optional[AnalysisOptions] = None,
    now: Optional[datetime] = None,
) -> AnalysisResult:
    """Validate ``engine`` then score and rank a single response.

    Answers to questions outside ``quiz`` are ignored; pass ``quiz=None`` to
    score every answer in the response.
    """

    _check_engine(engine)
    return _analyze(engine, quiz, response, options or config.default_options(), now)


def analyze_batch(
    engine: EngineDefinition,
    quiz: Optional[Quiz],
    responses: Sequence[QuizResponse],
    options: Optional[AnalysisOptions] = None,
    max_workers: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[AnalysisResult]:
    """Analyse many responses against one engine; output keeps input order."""

    _check_engine(engine)
    opts = options or config.default_options()
    workers = max_workers if max_workers is not None else config.BATCH_MAX_WORKERS
    if workers <= 1 or len(responses) <= 1:
        return [_analyze(engine, quiz, r, opts, now) for r in responses]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda r: _analyze(engine, quiz, r, opts, now), responses))


def summarize(results: Sequence[AnalysisResult], now: Optional[datetime] = None) -> AnalysisSummary:
    """Aggregate results of one engine into a per-ending win distribution."""

    if not results:
        raise AnalysisError("no analysis results to summarize")

    stats: Dict[str, Dict[str, float]] = {}
    for res in results:
        for er in res.ending_results:
            row = stats.setdefault(er.ending_id, {"wins": 0, "seen": 0, "points": 0.0, "pct": 0.0})
            row["seen"] += 1
            row["points"] += er.points
            row["pct"] += er.percentage
            if er.is_winner:
                row["wins"] += 1

    total = len(results)
    dist = [
        EndingDistribution(
            ending_id=eid,
            count=int(row["wins"]),
            percentage=round(row["wins"] / total * 100.0, 1),
            average_points=round(row["points"] / row["seen"], 2),
            average_percentage=round(row["pct"] / row["seen"], 1),
        )
        for eid, row in stats.items()
    ]
    dist.sort(key=lambda d: (-d.count, -d.average_percentage, d.ending_id))

    first = results[0]
    return AnalysisSummary(
        engine_id=first.engine_id,
        engine_version=first.engine_version,
        total_responses=total,
        ending_distribution=tuple(dist),
        generated_at=now or _utcnow(),
    )


def compare_analyses(
    local: AnalysisResult,
    server: AnalysisResult,
    threshold: Optional[float] = None,
) -> ComparisonReport:
    """Diff two analyses of the same response, ending by ending.

    Endings present in only one of the two results are skipped.
    """

    limit = config.COMPARE_THRESHOLD if threshold is None else threshold
    server_pct = {er.ending_id: er.percentage for er in server.ending_results}
    diffs: List[PercentageDifference] = []
    similar = True
    for er in local.ending_results:
        if er.ending_id not in server_pct:
            continue
        delta = abs(er.percentage - server_pct[er.ending_id])
        if delta > limit:
            similar = False
        diffs.append(
            PercentageDifference(
                ending_id=er.ending_id,
                local_percentage=er.percentage,
                server_percentage=server_pct[er.ending_id],
                difference=delta,
            )
        )
    return ComparisonReport(is_similar=similar, differences=tuple(diffs))
