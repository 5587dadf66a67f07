from __future__ import annotations
import argparse, dataclasses, os
from analysis_core.engine import analyze_batch
from analysis_core.loader import engine_from_dict, load_json, quiz_from_dict, response_from_dict
from analysis_core.result_export import to_csv
from analysis_core.types import AnalysisResult, Quiz, QuizResponse
from analysis_core.validators import validate_engine


def ask(question) -> int | None:
    prompt = f"({question.min_rating}-{question.max_rating}) {question.title or question.question_id}"
    while True:
        v = input(prompt + " [enter to skip]: ").strip()
        if not v: return None
        if v.lstrip("-").isdigit() and question.in_range(int(v)): return int(v)
        print(f"Enter a whole number between {question.min_rating} and {question.max_rating}.")


def take_quiz(quiz: Quiz) -> QuizResponse:
    answers = {}
    for q in quiz.questions:
        v = ask(q)
        if v is not None: answers[q.question_id] = v
    return QuizResponse(answers=answers, response_id="terminal", quiz_id=quiz.quiz_id)


def render(result: AnalysisResult) -> str:
    lines = [f"Response {result.response_id} (engine {result.engine_id}@{result.engine_version})"]
    for er in result.ending_results:
        mark = "*" if er.is_winner else " "
        lines.append(f" {mark}{er.rank:>2}. {er.ending_id:<24} {er.percentage:6.2f}%  ({er.points:.3f} pts)")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Score quiz responses against an analysis engine.")
    ap.add_argument("engine", help="engine definition JSON")
    ap.add_argument("quiz", help="quiz definition JSON")
    ap.add_argument("responses", nargs="?", help="response JSON (object or list); omit to answer interactively")
    ap.add_argument("--beta", type=float, help="override the engine's separation exponent")
    ap.add_argument("--csv", help="directory to write one CSV ranking per response")
    args = ap.parse_args(argv)

    engine = engine_from_dict(load_json(args.engine))
    if args.beta is not None:
        engine = validate_engine(dataclasses.replace(engine, config=dataclasses.replace(engine.config, beta=args.beta)))
    quiz = quiz_from_dict(load_json(args.quiz))

    if args.responses:
        raw = load_json(args.responses)
        responses = [response_from_dict(r) for r in (raw if isinstance(raw, list) else [raw])]
    else:
        print(f"Quiz {quiz.quiz_id}: {len(quiz.questions)} questions")
        responses = [take_quiz(quiz)]

    results = analyze_batch(engine, quiz, responses)
    for res in results:
        print(render(res))
        if args.csv:
            os.makedirs(args.csv, exist_ok=True)
            path = os.path.join(args.csv, f"{res.response_id}.csv")
            with open(path, "w", encoding="utf-8", newline="") as f: f.write(to_csv(res))
            print(f"Saved: {path}")
    return 0


if __name__ == "__main__": raise SystemExit(main())
