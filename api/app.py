from __future__ import annotations
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import logging, typing as t

from scoring_core.ai_scoring import AIScoringAdapter
from scoring_core.engine import ScoringEngine
from scoring_core.errors import (
    AIScoringError,
    ConfigurationError,
    MissingAIScoresError,
    ScoringError,
)
from scoring_core.formula import FormulaEvaluator
from scoring_core.types import AI_SCORABLE_GAMES, GameType, ScoringConfig
from scoring_core.variables import VariableExtractor

log = logging.getLogger(__name__)

app = FastAPI(title="Game Scoring API")
app.state.engine = ScoringEngine()
app.state.ai = AIScoringAdapter()
app.state.formulas = FormulaEvaluator()
app.state.variables = VariableExtractor()

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

# ---- Schemas ----
class ScoreReq(BaseModel):
    game_type: str
    raw_data: t.Union[list[dict[str, t.Any]], dict[str, t.Any]]
    config: dict[str, t.Any]
    ai_scores: dict[str, t.Any] | None = None

class AIScoreReq(BaseModel):
    game_type: str
    response_data: dict[str, t.Any]
    config: dict[str, t.Any]

class FormulaReq(BaseModel):
    formula: str
    variables: dict[str, float] = Field(default_factory=dict)

# ---- Helpers ----
def _config(raw: dict[str, t.Any]) -> ScoringConfig:
    try:
        return ScoringConfig.from_dict(raw)
    except ConfigurationError as e:
        raise HTTPException(422, str(e))

def _require_ai_scorable(game_type: str) -> None:
    if GameType.parse(game_type) not in AI_SCORABLE_GAMES:
        raise HTTPException(400, f"{game_type} does not require AI scoring")

def _ai_scores(game_type: str, response_data: dict[str, t.Any], cfg: ScoringConfig) -> dict[str, t.Any]:
    try:
        return app.state.ai.score_response(game_type, response_data, cfg)
    except AIScoringError as e:
        log.error("AI scoring error for %s: %s", game_type, e)
        raise HTTPException(502, str(e))

def _calculate(game_type: str, raw_data: t.Any, cfg: ScoringConfig, ai_scores=None) -> dict[str, t.Any]:
    try:
        return app.state.engine.calculate_scores(game_type, raw_data, cfg, ai_scores).to_dict()
    except (ConfigurationError, MissingAIScoresError) as e:
        raise HTTPException(400, str(e))
    except ScoringError as e:
        raise HTTPException(500, str(e))

# ---- Health ----
@app.get("/")
def root():
    return {"status": "ok", "service": "game-scoring-api"}

@app.get("/health")
def health():
    s = app.state.ai.settings
    return {
        "status": "ok",
        "ai_configured": s.configured,
        "ai_models": list(s.models),
    }

# ---- Scoring ----
@app.post("/api/scoring/calculate")
def calculate(req: ScoreReq):
    cfg = _config(req.config)
    return {"success": True, "data": _calculate(req.game_type, req.raw_data, cfg, req.ai_scores)}

@app.post("/api/ai/score")
def ai_score(req: AIScoreReq):
    _require_ai_scorable(req.game_type)
    cfg = _config(req.config)
    scores = _ai_scores(req.game_type, req.response_data, cfg)
    return {"success": True, "data": {"ai_scores": scores}}

@app.post("/api/ai/submit-game")
def ai_submit(req: AIScoreReq):
    _require_ai_scorable(req.game_type)
    cfg = _config(req.config)
    scores = _ai_scores(req.game_type, req.response_data, cfg)
    final = _calculate(req.game_type, req.response_data, cfg, scores)
    return {"success": True, "data": {"ai_scores": scores, "final_scores": final}}

# ---- Formulas ----
@app.post("/api/formulas/validate")
def formula_validate(req: FormulaReq):
    return app.state.formulas.validate(req.formula)

@app.post("/api/formulas/test")
def formula_test(req: FormulaReq):
    out = app.state.formulas.test_formula(req.formula, req.variables)
    out["variables_used"] = sorted(app.state.formulas.variables_of(req.formula))
    return out

@app.get("/api/formulas/variables/{game_type}")
def formula_variables(game_type: str):
    return app.state.variables.available_variables(game_type)
