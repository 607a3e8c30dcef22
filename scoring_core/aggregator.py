from __future__ import annotations
import math
from typing import Any, Dict, Mapping, Optional

from .config import ROUND_DIGITS, SCORE_MAX, SCORE_MIN
from .types import CompetencyScore, FinalScoreResult


def _r(x: float) -> float:
    return round(float(x), ROUND_DIGITS)


def _finite(x: Any) -> float:
    try:
        xf = float(x)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return xf if math.isfinite(xf) else 0.0


def clamp_score(x: Any) -> float:
    try:
        xf = float(x)
    except (TypeError, ValueError, OverflowError):
        return SCORE_MIN
    if xf != xf:  # NaN
        return SCORE_MIN
    return max(SCORE_MIN, min(SCORE_MAX, xf))


def assemble(
    raw_scores: Mapping[str, float],
    weights: Mapping[str, float],
    raw_stats: Optional[Mapping[str, Any]] = None,
    *,
    flags: Optional[Mapping[str, Mapping[str, bool]]] = None,
    clamp: bool = False,
    formula_details: Optional[Dict[str, Dict[str, Any]]] = None,
) -> FinalScoreResult:
    """
    Weight raw competency values into a FinalScoreResult.

    Exactly the competencies named in ``weights`` are reported; a weighted
    competency with no computed value scores 0, computed values without a
    weight are dropped. Weighting uses the unrounded raw value and only the
    reported numbers are rounded, so ``final_score == round(sum(raw * weight), 2)``
    over the unrounded raws. Non-finite values score 0.
    """
    flags = flags or {}
    competencies: Dict[str, CompetencyScore] = {}
    total = 0.0
    for name, weight in weights.items():
        raw = raw_scores.get(name, 0.0)
        raw = clamp_score(raw) if clamp else _finite(raw)
        w = float(weight)
        weighted = _finite(raw * w)
        total += weighted
        extra = flags.get(name, {})
        competencies[name] = CompetencyScore(
            raw=_r(raw),
            weighted=_r(weighted),
            weight=w,
            scored_by_ai=extra.get("scored_by_ai"),
            requires_ai=extra.get("requires_ai"),
        )
    return FinalScoreResult(
        final_score=_r(_finite(total)),
        competencies=competencies,
        raw_stats={k: _finite(v) if isinstance(v, float) else v for k, v in (raw_stats or {}).items()},
        formula_details=formula_details,
    )


__all__ = ["assemble", "clamp_score"]
