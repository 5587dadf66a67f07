import csv
import io
from datetime import datetime, timezone

from analysis_core.engine import analyze_response, summarize
from analysis_core.result_export import result_to_dict, summary_to_dict, to_csv, to_json
from analysis_core.types import Question, Quiz, QuizResponse

from tests.conftest import build_scenario_engine

NOW = datetime(2024, 3, 3, 9, 30, tzinfo=timezone.utc)


def _result():
    engine = build_scenario_engine()
    quiz = Quiz("scenario-quiz", (Question("Q1"),))
    return analyze_response(engine, quiz, QuizResponse({"Q1": 8}, response_id="r-42"), now=NOW)


def test_json_export_shape():
    payload = to_json(_result())
    assert payload["response_id"] == "r-42"
    assert payload["engine_id"] == "scenario"
    assert [row["ending_id"] for row in payload["rows"]] == ["A", "B"]
    assert payload["rows"][0]["is_winner"] is True
    assert set(payload["rows"][0]) == {"rank", "ending_id", "points", "percentage", "is_winner"}


def test_csv_export_has_stable_header_and_order():
    text = to_csv(_result())
    lines = text.strip().splitlines()
    assert lines[0] == "rank,ending_id,points,percentage,is_winner"
    rows = list(csv.DictReader(io.StringIO(text)))
    assert [r["ending_id"] for r in rows] == ["A", "B"]
    assert rows[0]["is_winner"] == "True"
    assert float(rows[1]["points"]) == float(_result().ending_results[1].points)


def test_result_to_dict_is_json_safe():
    data = result_to_dict(_result())
    assert data["computed_at"] == NOW.isoformat()
    first = data["ending_results"][0]
    assert first["question_breakdown"][0]["ideal_answers"] == [8]
    assert data["metadata"]["total_questions"] == 1


def test_summary_to_dict():
    summary = summarize([_result(), _result()], now=NOW)
    data = summary_to_dict(summary)
    assert data["total_responses"] == 2
    assert data["generated_at"] == NOW.isoformat()
    assert data["ending_distribution"][0] == {
        "ending_id": "A",
        "count": 2,
        "percentage": 100.0,
        "average_points": 10.0,
        "average_percentage": round(_result().ending_results[0].percentage, 1),
    }
