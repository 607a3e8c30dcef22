from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import ConfigurationError


class GameType(str, Enum):
    MENTAL_MATH_SPRINT = "mental_math_sprint"
    STROOP_TEST = "stroop_test"
    FACE_NAME_MATCH = "face_name_match"
    SIGN_SUDOKU = "sign_sudoku"
    CARD_FLIP_CHALLENGE = "card_flip_challenge"
    LUCKY_FLIP = "lucky_flip"
    VOCAB_CHALLENGE = "vocab_challenge"
    SCENARIO_CHALLENGE = "scenario_challenge"
    AI_DEBATE = "ai_debate"
    STATEMENT_REASONING = "statement_reasoning"
    CREATIVE_USES = "creative_uses"

    @classmethod
    def parse(cls, value: Union[str, "GameType", None]) -> Optional["GameType"]:
        if isinstance(value, GameType):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


FIXED_FORMULA_GAMES = frozenset({
    GameType.MENTAL_MATH_SPRINT,
    GameType.STROOP_TEST,
    GameType.FACE_NAME_MATCH,
    GameType.SIGN_SUDOKU,
    GameType.CARD_FLIP_CHALLENGE,
    GameType.LUCKY_FLIP,
    GameType.VOCAB_CHALLENGE,
})
AI_SCORED_GAMES = frozenset({
    GameType.SCENARIO_CHALLENGE,
    GameType.AI_DEBATE,
    GameType.STATEMENT_REASONING,
    GameType.CREATIVE_USES,
})
# lucky_flip is computed locally but two of its competencies can be AI-scored
AI_SCORABLE_GAMES = AI_SCORED_GAMES | {GameType.LUCKY_FLIP}

RawGameData = Union[List[Dict[str, Any]], Dict[str, Any]]
VariableMapping = Dict[str, float]


def _float_map(value: Any, name: str) -> Dict[str, float]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{name} must be a mapping, got {type(value).__name__}")
    out: Dict[str, float] = {}
    for k, v in value.items():
        if isinstance(v, bool):
            raise ConfigurationError(f"{name}.{k} must be numeric")
        try:
            out[str(k)] = float(v)
        except (TypeError, ValueError, OverflowError):
            raise ConfigurationError(f"{name}.{k} must be numeric, got {v!r}") from None
        if not math.isfinite(out[str(k)]):
            raise ConfigurationError(f"{name}.{k} must be a finite number, got {v!r}")
    return out


@dataclass(frozen=True)
class ScoringConfig:
    final_weights: Dict[str, float] = field(default_factory=dict)
    competency_formulas: Optional[Dict[str, str]] = None
    settings: Dict[str, Any] = field(default_factory=dict)
    penalties: Dict[str, float] = field(default_factory=dict)
    bonuses: Dict[str, float] = field(default_factory=dict)
    ai_prompts: Dict[str, str] = field(default_factory=dict)

    @staticmethod
    def from_dict(data: Mapping[str, Any] | None) -> "ScoringConfig":
        """Build a config from the JSON shape stored by the versioning service."""

        if data is None:
            raise ConfigurationError("scoring config is required")
        if not isinstance(data, Mapping):
            raise ConfigurationError("scoring config must be a mapping")
        formulas = data.get("competency_formulas")
        if formulas is not None:
            if not isinstance(formulas, Mapping):
                raise ConfigurationError("competency_formulas must be a mapping")
            formulas = {str(k): v for k, v in formulas.items()}
        settings = data.get("settings") or {}
        if not isinstance(settings, Mapping):
            raise ConfigurationError("settings must be a mapping")
        prompts = data.get("ai_prompts") or {}
        if not isinstance(prompts, Mapping):
            raise ConfigurationError("ai_prompts must be a mapping")
        return ScoringConfig(
            final_weights=_float_map(data.get("final_weights"), "final_weights"),
            competency_formulas=formulas or None,
            settings=dict(settings),
            penalties=_float_map(data.get("penalties"), "penalties"),
            bonuses=_float_map(data.get("bonuses"), "bonuses"),
            ai_prompts={str(k): str(v) for k, v in prompts.items() if v is not None and str(v).strip()},
        )


@dataclass(frozen=True)
class CompetencyScore:
    raw: float
    weighted: float
    weight: float
    scored_by_ai: Optional[bool] = None
    requires_ai: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"raw": self.raw, "weighted": self.weighted, "weight": self.weight}
        if self.scored_by_ai is not None:
            out["scored_by_ai"] = self.scored_by_ai
        if self.requires_ai is not None:
            out["requires_ai"] = self.requires_ai
        return out


@dataclass(frozen=True)
class FinalScoreResult:
    final_score: float
    competencies: Dict[str, CompetencyScore]
    raw_stats: Dict[str, Union[float, int, bool]] = field(default_factory=dict)
    formula_details: Optional[Dict[str, Dict[str, Any]]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "final_score": self.final_score,
            "competencies": {k: v.to_dict() for k, v in self.competencies.items()},
            "raw_stats": dict(self.raw_stats),
        }
        if self.formula_details is not None:
            out["formula_details"] = {k: dict(v) for k, v in self.formula_details.items()}
        return out
