"""Turn raw per-ending points into a percentage distribution and ranking.

``beta`` is the separation exponent: ``beta == 1`` is a plain share of the
total, larger values push the leader further ahead of the pack.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from .types import AnalysisOptions, EndingResult, EndingScore, RankedEnding

__all__ = ["normalize", "rank_endings"]


def _sort_key(item: RankedEnding) -> tuple[float, str]:
    return (-item.percentage, item.ending_id)


def _all_equal(values: Sequence[float]) -> bool:
    return all(v == values[0] for v in values[1:])


def normalize(raw_scores: Mapping[str, float], beta: float) -> List[RankedEnding]:
    """Map raw points onto percentages summing to 100.

    Scores are shifted so the lowest negative score sits at zero before the
    ``beta`` power is applied; ``0 ** beta`` is taken as ``0``.  When every
    raw score is equal, or nothing survives the shift, each ending receives
    ``100 / count``.  The returned ``points`` are always the unshifted input.
    """

    if not raw_scores:
        return []
    ids = list(raw_scores)
    values = [float(raw_scores[e]) for e in ids]
    even = 100.0 / len(ids)

    if _all_equal(values):
        ranked = [RankedEnding(e, v, even) for e, v in zip(ids, values)]
        return sorted(ranked, key=_sort_key)

    floor = min(0.0, min(values))
    weighted = []
    for v in values:
        shifted = v - floor
        weighted.append(shifted ** beta if shifted > 0 else 0.0)
    total = sum(weighted)

    if total <= 0:
        ranked = [RankedEnding(e, v, even) for e, v in zip(ids, values)]
    else:
        ranked = [
            RankedEnding(e, v, 100.0 * w / total) for e, v, w in zip(ids, values, weighted)
        ]
    return sorted(ranked, key=_sort_key)


def rank_endings(
    ranked: Sequence[RankedEnding],
    options: Optional[AnalysisOptions] = None,
    scores: Optional[Mapping[str, EndingScore]] = None,
) -> List[EndingResult]:
    """Attach ranks, winner flags and breakdowns, then apply display filters.

    ``ranked`` must already be ordered by :func:`normalize`.  Winners are all
    endings tied on the top percentage, provided it beats the threshold and
    the raw scores actually separate the endings.
    """

    opts = options or AnalysisOptions()
    if not ranked:
        return []

    points = [r.points for r in ranked]
    top = ranked[0].percentage
    has_signal = not _all_equal(points)

    by_id: Dict[str, EndingScore] = dict(scores or {})
    out: List[EndingResult] = []
    for idx, item in enumerate(ranked, start=1):
        breakdown = None
        if opts.enable_question_breakdown and item.ending_id in by_id:
            breakdown = by_id[item.ending_id].breakdown
        out.append(
            EndingResult(
                ending_id=item.ending_id,
                points=item.points,
                percentage=item.percentage,
                rank=idx,
                is_winner=(
                    has_signal
                    and item.percentage == top
                    and item.percentage > opts.min_percentage_threshold
                ),
                question_breakdown=breakdown,
            )
        )

    out = [r for r in out if r.percentage >= opts.min_percentage_threshold]
    if opts.max_ending_results is not None:
        out = out[: max(0, int(opts.max_ending_results))]
    return out
