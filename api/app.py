from __future__ import annotations
from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import logging, os, uuid, typing as t

# ---- Engine imports ----
from analysis_core import config as analysis_config
from analysis_core.engine import AnalysisError, analyze_batch, analyze_response, compare_analyses, summarize
from analysis_core.loader import (
    engine_from_dict,
    options_from_dict,
    quiz_from_dict,
    response_from_dict,
    result_from_dict,
)
from analysis_core.result_export import result_to_dict, summary_to_dict, to_csv
from analysis_core.types import AnalysisResult
from analysis_core.validators import ConfigurationError
from .storage import (
    delete_result,
    list_results_for_engine,
    list_results_for_response,
    load_result,
    save_result,
    utcnow_iso,
)

log = logging.getLogger(__name__)

app = FastAPI(title="Quiz Analysis API")


@app.get("/")
def root():
    return {"status": "ok", "service": "quiz-analysis-api"}


ALLOWED_ORIGINS = [o for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)


# ---- Schemas ----
class ScoringConfigIn(BaseModel):
    primary_point_value: float | None = None
    secondary_point_value: float | None = None
    primary_point_weight: float | None = None
    secondary_point_weight: float | None = None
    primary_distance_falloff: float | None = None
    secondary_distance_falloff: float | None = None
    primary_min_points: float | None = None
    secondary_min_points: float | None = None
    beta: float | None = None
    distance_gamma: float | None = None
    score_multiplier: float | None = None


class RuleIn(BaseModel):
    question_id: str
    ideal_answers: list[float] = Field(default_factory=list)
    is_primary: bool = False
    weight_multiplier: float | None = None
    distance_gamma: float | None = None


class EndingIn(BaseModel):
    ending_id: str
    name: str = ""
    rules: list[RuleIn] = Field(default_factory=list)
    short_name: str | None = None
    category: str | None = None
    scoring_config: ScoringConfigIn | None = None


class EngineIn(BaseModel):
    engine_id: str = "engine"
    version: str = "1.0.0"
    name: str = ""
    is_active: bool = True
    config: ScoringConfigIn | None = None
    endings: list[EndingIn] = Field(default_factory=list)


class QuestionIn(BaseModel):
    question_id: str
    min_rating: int = 1
    max_rating: int = 10
    title: str = ""


class QuizIn(BaseModel):
    quiz_id: str = "quiz"
    questions: list[QuestionIn] = Field(default_factory=list)


class ResponseIn(BaseModel):
    response_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    quiz_id: str | None = None
    answers: dict[str, t.Any] = Field(default_factory=dict)


class OptionsIn(BaseModel):
    disable_secondary_points: bool | None = None
    min_percentage_threshold: float | None = None
    enable_question_breakdown: bool | None = None
    max_ending_results: int | None = None


class AnalyzeReq(BaseModel):
    engine: EngineIn
    quiz: QuizIn | None = None
    response: ResponseIn
    options: OptionsIn | None = None
    store: bool = True


class BatchReq(BaseModel):
    engine: EngineIn
    quiz: QuizIn | None = None
    responses: list[ResponseIn]
    options: OptionsIn | None = None
    store: bool = False


class CompareReq(BaseModel):
    local: dict[str, t.Any]
    server: dict[str, t.Any]
    threshold: float | None = None


# ---- Helpers ----
def _config_error(exc: ConfigurationError) -> HTTPException:
    return HTTPException(422, {"error": "configuration", "issues": [i.as_dict() for i in exc.issues]})


def _engine(model: EngineIn):
    try:
        return engine_from_dict(model.model_dump())
    except ConfigurationError as exc:
        raise _config_error(exc) from exc


def _options(model: OptionsIn | None):
    data = model.model_dump(exclude_none=True) if model is not None else None
    return options_from_dict(data)


def _store(result: AnalysisResult) -> dict[str, t.Any]:
    rid = str(uuid.uuid4())
    payload = result_to_dict(result)
    payload["id"] = rid
    winner = result.winner()
    metadata = {
        "engineId": result.engine_id,
        "engineVersion": result.engine_version,
        "responseId": result.response_id,
        "createdAt": utcnow_iso(),
        "winner": winner.ending_id if winner else None,
    }
    save_result(rid, payload, metadata)
    log.info("stored result %s for response %s", rid, result.response_id)
    return payload


# ---- Health ----
@app.get("/health")
def health():
    return {
        "beta_default": analysis_config.BETA,
        "export_enabled": analysis_config.EXPORT_ENABLED,
        "debug_trace": analysis_config.DEBUG_TRACE,
    }


# ---- Engines ----
@app.post("/engines/validate")
def validate_engine_endpoint(engine: EngineIn):
    try:
        built = engine_from_dict(engine.model_dump())
    except ConfigurationError as exc:
        return {"ok": False, "issues": [i.as_dict() for i in exc.issues]}
    return {"ok": True, "endings": list(built.ending_ids()), "issues": []}


@app.get("/engines/{engine_id}/summary")
def engine_summary(engine_id: str):
    rows = list_results_for_engine(engine_id)
    results = []
    for row in rows:
        stored = load_result(row["id"])
        if stored:
            results.append(result_from_dict(stored))
    if not results:
        raise HTTPException(404, "no results for engine")
    return summary_to_dict(summarize(results))


# ---- Analysis ----
@app.post("/analysis")
def analyze(req: AnalyzeReq):
    engine = _engine(req.engine)
    quiz = quiz_from_dict(req.quiz.model_dump()) if req.quiz is not None else None
    response = response_from_dict(req.response.model_dump())
    try:
        result = analyze_response(engine, quiz, response, _options(req.options))
    except AnalysisError as exc:
        raise HTTPException(409, str(exc)) from exc
    if req.store:
        return _store(result)
    return result_to_dict(result)


@app.post("/analysis/batch")
def analyze_many(req: BatchReq):
    engine = _engine(req.engine)
    quiz = quiz_from_dict(req.quiz.model_dump()) if req.quiz is not None else None
    responses = [response_from_dict(r.model_dump()) for r in req.responses]
    try:
        results = analyze_batch(engine, quiz, responses, _options(req.options))
    except AnalysisError as exc:
        raise HTTPException(409, str(exc)) from exc
    payloads = [_store(r) if req.store else result_to_dict(r) for r in results]
    summary = summary_to_dict(summarize(results)) if results else None
    return {"results": payloads, "summary": summary}


@app.post("/analysis/compare")
def compare(req: CompareReq):
    try:
        local = result_from_dict(req.local)
        server = result_from_dict(req.server)
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(422, f"malformed result payload: {exc}") from exc
    report = compare_analyses(local, server, req.threshold)
    return {
        "is_similar": report.is_similar,
        "differences": [d.__dict__ for d in report.differences],
    }


# ---- Stored results ----
@app.get("/results/{result_id}")
def get_result(result_id: str):
    result = load_result(result_id)
    if not result:
        raise HTTPException(404, "result not found")
    return result


@app.get("/results/{result_id}/export.csv")
def export_result_csv(result_id: str):
    if not analysis_config.EXPORT_ENABLED:
        raise HTTPException(404, "export disabled")
    stored = load_result(result_id)
    if not stored:
        raise HTTPException(404, "result not found")
    body = to_csv(result_from_dict(stored))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{result_id}.csv\""},
    )


@app.delete("/results/{result_id}")
def delete_result_endpoint(result_id: str):
    ok = delete_result(result_id)
    if not ok:
        raise HTTPException(404, "result not found")
    return {"ok": True}


@app.get("/responses/{response_id}/results")
def list_response_results(response_id: str):
    return {"results": list_results_for_response(response_id)}
