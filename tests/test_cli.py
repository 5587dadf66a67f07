import json

from app_cli import analyze as cli

ENGINE = {
    "engineId": "scenario",
    "version": "1.0.0",
    "config": {"beta": 1.0},
    "endings": [
        {"endingId": "A", "rules": [{"questionId": "Q1", "idealAnswers": [8], "isPrimary": True}]},
        {"endingId": "B", "rules": [{"questionId": "Q1", "idealAnswers": [2], "isPrimary": True}]},
    ],
}
QUIZ = {"quizId": "qz", "questions": [{"id": "Q1", "title": "How adventurous are you?"}, {"id": "Q2"}]}


def _files(tmp_path):
    engine = tmp_path / "engine.json"
    quiz = tmp_path / "quiz.json"
    engine.write_text(json.dumps(ENGINE), encoding="utf-8")
    quiz.write_text(json.dumps(QUIZ), encoding="utf-8")
    return str(engine), str(quiz)


def test_cli_scores_response_file_and_writes_csv(tmp_path, capsys):
    engine, quiz = _files(tmp_path)
    responses = tmp_path / "responses.json"
    responses.write_text(
        json.dumps([{"responseId": "r1", "answers": {"Q1": 8}}, {"responseId": "r2", "answers": {"Q1": 2}}]),
        encoding="utf-8",
    )
    out_dir = tmp_path / "csv"

    assert cli.main([engine, quiz, str(responses), "--csv", str(out_dir)]) == 0
    out = capsys.readouterr().out
    assert "Response r1 (engine scenario@1.0.0)" in out
    assert "Response r2" in out
    assert (out_dir / "r1.csv").read_text(encoding="utf-8").startswith("rank,ending_id")
    assert (out_dir / "r2.csv").exists()


def test_cli_beta_override_changes_share(tmp_path, capsys):
    engine, quiz = _files(tmp_path)
    single = tmp_path / "one.json"
    single.write_text(json.dumps({"responseId": "solo", "answers": {"Q1": 8}}), encoding="utf-8")

    cli.main([engine, quiz, str(single)])
    linear = capsys.readouterr().out
    cli.main([engine, quiz, str(single), "--beta", "3"])
    sharp = capsys.readouterr().out
    assert "65.30%" in linear
    assert "65.30%" not in sharp


def test_cli_interactive_skips_blank_and_rejects_out_of_range(tmp_path, capsys, monkeypatch):
    engine, quiz = _files(tmp_path)
    replies = iter(["11", "abc", "8", ""])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))

    assert cli.main([engine, quiz]) == 0
    out = capsys.readouterr().out
    assert "Quiz qz: 2 questions" in out
    assert out.count("Enter a whole number between 1 and 10.") == 2
    assert "Response terminal" in out
    assert "*" in out.split("Response terminal", 1)[1].splitlines()[1]
