"""Helpers to export analysis results in JSON/CSV formats."""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List
import csv
import io

from .types import AnalysisResult, AnalysisSummary, EndingResult

_FIELDS: tuple[str, ...] = (
    "rank",
    "ending_id",
    "points",
    "percentage",
    "is_winner",
)


def _to_basic(x: Any) -> Any:
    if isinstance(x, datetime):
        return x.isoformat()
    if isinstance(x, dict):
        return {str(k): _to_basic(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [_to_basic(v) for v in x]
    return x


def result_to_dict(result: AnalysisResult) -> Dict[str, Any]:
    """JSON-safe form of a result; ending order is preserved."""

    return _to_basic(asdict(result))


def summary_to_dict(summary: AnalysisSummary) -> Dict[str, Any]:
    return _to_basic(asdict(summary))


def _row(res: EndingResult) -> Dict[str, Any]:
    return {
        "rank": int(res.rank),
        "ending_id": str(res.ending_id),
        "points": float(res.points),
        "percentage": float(res.percentage),
        "is_winner": bool(res.is_winner),
    }


def to_json(result: AnalysisResult) -> Dict[str, Any]:
    """Return the ordered ranking rows as a JSON-safe payload."""

    rows: List[Dict[str, Any]] = [_row(r) for r in result.ending_results]
    return {
        "response_id": result.response_id,
        "engine_id": result.engine_id,
        "engine_version": result.engine_version,
        "rows": rows,
    }


def to_csv(result: AnalysisResult) -> str:
    """Render the ranking as CSV with a fixed header."""

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    for res in result.ending_results:
        writer.writerow(_row(res))
    return buf.getvalue()


__all__ = ["result_to_dict", "summary_to_dict", "to_json", "to_csv"]
