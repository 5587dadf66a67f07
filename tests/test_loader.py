from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from analysis_core import config
from analysis_core.engine import analyze_response
from analysis_core.loader import (
    engine_from_dict,
    load_json,
    options_from_dict,
    quiz_from_dict,
    response_from_dict,
    result_from_dict,
    scoring_config_from_dict,
)
from analysis_core.result_export import result_to_dict
from analysis_core.validators import ConfigurationError

from tests.conftest import build_synthetic_engine, build_synthetic_quiz, build_synthetic_responses

ENGINE_PAYLOAD = {
    "engineId": "personality",
    "version": "3.0.0",
    "name": "Personality",
    "config": {"beta": 1.0, "primaryDistanceFalloff": 0.2},
    "endings": [
        {
            "endingId": "explorer",
            "name": "The Explorer",
            "shortName": "EXP",
            "questionRules": [
                {"questionId": "Q1", "idealAnswers": [8, 9], "isPrimary": True},
                {"questionId": "Q2", "idealAnswers": [3], "isPrimary": False, "weightMultiplier": 2},
            ],
        },
        {
            "endingId": "keeper",
            "fullName": "The Keeper",
            "customScoringConfig": {"primaryPointValue": 20},
            "rules": [{"questionId": "Q1", "idealAnswers": [2], "isPrimary": True}],
        },
    ],
}


def test_engine_from_camel_case_payload():
    engine = engine_from_dict(ENGINE_PAYLOAD)
    assert (engine.engine_id, engine.version, engine.name) == ("personality", "3.0.0", "Personality")
    assert engine.ending_ids() == ("explorer", "keeper")
    assert engine.config.beta == 1.0
    assert engine.config.primary_distance_falloff == 0.2

    explorer, keeper = engine.endings
    assert explorer.short_name == "EXP"
    assert explorer.rules[0].ideal_answers == (8, 9)
    assert explorer.rules[1].is_primary is False
    assert explorer.rules[1].weight_multiplier == 2
    assert explorer.scoring_config is None

    assert keeper.name == "The Keeper"
    assert keeper.scoring_config.primary_point_value == 20
    # ending override inherits the engine-level values it does not set
    assert keeper.scoring_config.primary_distance_falloff == 0.2


def test_missing_config_fields_use_configured_defaults(monkeypatch):
    monkeypatch.setattr(config, "BETA", 1.7)
    cfg = scoring_config_from_dict({"secondaryPointValue": 2.5, "scoreMultiplier": None})
    assert cfg.beta == 1.7
    assert cfg.secondary_point_value == 2.5
    assert cfg.score_multiplier == config.SCORE_MULTIPLIER
    assert cfg.primary_point_value == config.PRIMARY_POINT_VALUE


def test_malformed_engine_raises_configuration_error():
    with pytest.raises(ConfigurationError) as excinfo:
        engine_from_dict({"endings": [{"name": "no id"}]})
    assert excinfo.value.issues[0].field == "engine"


def test_invalid_engine_payload_is_validated():
    payload = dict(ENGINE_PAYLOAD, config={"beta": -2})
    with pytest.raises(ConfigurationError) as excinfo:
        engine_from_dict(payload)
    assert "beta" in {i.field for i in excinfo.value.issues}


def test_quiz_and_response_shapes():
    quiz = quiz_from_dict(
        {"quizId": "qz", "questions": [{"id": "Q1", "title": "Outdoors?"}, {"questionId": "Q2", "maxRating": 5}]}
    )
    assert quiz.quiz_id == "qz"
    assert quiz.question_ids() == ("Q1", "Q2")
    assert quiz.questions[1].max_rating == 5
    assert quiz.questions[0].title == "Outdoors?"

    mapped = response_from_dict({"responseId": "r1", "answers": {"Q1": 8}})
    listed = response_from_dict(
        {"id": "r1", "quizId": "qz", "answers": [{"questionId": "Q1", "value": 8}, {"questionId": "Q2", "value": None}]}
    )
    assert mapped.answers == {"Q1": 8}
    assert listed.answers == {"Q1": 8, "Q2": None}
    assert listed.response_id == mapped.response_id == "r1"
    assert listed.quiz_id == "qz"


def test_options_from_dict_overlays_defaults():
    opts = options_from_dict({"disableSecondaryPoints": True, "maxEndingResults": 3})
    assert opts.disable_secondary_points is True
    assert opts.max_ending_results == 3
    assert opts.enable_question_breakdown == config.ENABLE_QUESTION_BREAKDOWN

    assert options_from_dict({"maxEndingResults": 0}).max_ending_results is None
    assert options_from_dict(None) == config.default_options()


def test_load_json_reads_files(tmp_path):
    path = tmp_path / "engine.json"
    path.write_text(json.dumps(ENGINE_PAYLOAD), encoding="utf-8")
    assert engine_from_dict(load_json(path)).engine_id == "personality"


def test_stored_result_rebuilds_identically():
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    result = analyze_response(build_synthetic_engine(), build_synthetic_quiz(), build_synthetic_responses()[3], now=now)
    stored = json.loads(json.dumps(result_to_dict(result)))
    rebuilt = result_from_dict(stored)
    assert rebuilt.computed_at == now
    assert rebuilt.response_id == result.response_id
    assert [(r.ending_id, r.rank, r.is_winner) for r in rebuilt.ending_results] == [
        (r.ending_id, r.rank, r.is_winner) for r in result.ending_results
    ]
    assert [r.percentage for r in rebuilt.ending_results] == [r.percentage for r in result.ending_results]
    assert rebuilt.ending_results[0].question_breakdown is not None
