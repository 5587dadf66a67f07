from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from .loader import engine_from_dict, load_json, quiz_from_dict
from .types import EngineDefinition, Quiz


def _blank_question() -> dict[str, object]:
    return {"primary": 0, "secondary": 0, "endings": []}


def audit_engine(engine: EngineDefinition, quiz: Quiz) -> dict[str, object]:
    """Cross-check an engine's rules against the quiz they will score."""

    questions = {q.question_id: q for q in quiz.questions}
    coverage: dict[str, dict[str, object]] = {qid: _blank_question() for qid in questions}
    totals = {"endings": len(engine.endings), "rules": 0, "primary": 0, "secondary": 0}
    warnings: list[str] = []

    for ending in engine.endings:
        if not ending.rules:
            warnings.append(f"{ending.ending_id} has no rules and will always score 0")
        for rule in ending.rules:
            totals["rules"] += 1
            tier = "primary" if rule.is_primary else "secondary"
            totals[tier] += 1

            question = questions.get(rule.question_id)
            if question is None:
                warnings.append(f"{ending.ending_id} rule references unknown question {rule.question_id}")
                continue

            row = coverage[rule.question_id]
            row[tier] += 1  # type: ignore[operator]
            row["endings"].append(ending.ending_id)  # type: ignore[union-attr]

            outside = [v for v in rule.ideal_answers if not question.in_range(v)]
            if outside:
                warnings.append(
                    f"{ending.ending_id} {rule.question_id} ideal answers {outside} "
                    f"outside {question.min_rating}..{question.max_rating}"
                )

    for qid, row in coverage.items():
        if not row["endings"]:
            warnings.append(f"question {qid} is not referenced by any ending")

    return {"coverage": coverage, "warnings": warnings, "totals": totals}


def _format_row(qid: str, row: dict[str, object]) -> str:
    endings: Iterable[str] = row["endings"]  # type: ignore[assignment]
    return f"{qid:<16} P:{row['primary']:3d}  S:{row['secondary']:3d}  {', '.join(endings)}"


def print_report(summary: dict[str, object]) -> None:
    coverage: dict[str, dict[str, object]] = summary["coverage"]  # type: ignore[assignment]
    print("=== Engine Coverage ===")
    for qid in sorted(coverage):
        print("  " + _format_row(qid, coverage[qid]))

    warnings: list[str] = summary["warnings"]  # type: ignore[assignment]
    if warnings:
        print("\nWarnings:")
        for msg in warnings:
            print(f" - {msg}")
    else:
        print("\nNo warnings.")

    print("\nTotals:", summary["totals"])


def write_summary(summary: dict[str, object], path: Path) -> str:
    text = json.dumps(summary, indent=2, sort_keys=True)
    path.write_text(text + "\n", encoding="utf-8")
    return text


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Audit engine rule coverage against a quiz.")
    parser.add_argument("engine", help="engine definition JSON")
    parser.add_argument("quiz", help="quiz definition JSON")
    parser.add_argument("--out", help="write the audit summary JSON here")
    args = parser.parse_args(argv)

    engine = engine_from_dict(load_json(args.engine))
    quiz = quiz_from_dict(load_json(args.quiz))
    summary = audit_engine(engine, quiz)
    print_report(summary)
    if args.out:
        write_summary(summary, Path(args.out))
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
