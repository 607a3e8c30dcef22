from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from .aggregator import assemble, clamp_score
from .formula import FormulaEvaluator
from .types import FinalScoreResult, ScoringConfig
from .variables import VariableExtractor

log = logging.getLogger(__name__)


class DynamicFormulaCalculator:
    """Scores any game whose config carries ``competency_formulas``."""

    def __init__(
        self,
        extractor: Optional[VariableExtractor] = None,
        evaluator: Optional[FormulaEvaluator] = None,
    ):
        self.extractor = extractor or VariableExtractor()
        self.evaluator = evaluator or FormulaEvaluator()

    def calculate(self, game_type: str, raw_data: Any, config: ScoringConfig) -> FinalScoreResult:
        variables = self.extractor.extract(game_type, raw_data, config)
        scores: Dict[str, float] = {}
        details: Dict[str, Dict[str, Any]] = {}
        for name, formula in (config.competency_formulas or {}).items():
            value = self.evaluator.evaluate(formula, variables)
            clamped = clamp_score(value)
            log.debug("%s/%s: %r -> %s (clamped %s)", game_type, name, formula, value, clamped)
            scores[name] = clamped
            details[name] = {
                "formula": formula,
                "variables_used": sorted(self.evaluator.variables_of(formula)),
                "unclamped": value,
            }
        missing = [n for n in config.final_weights if n not in scores]
        if missing:
            log.warning("%s: no formula for weighted competencies %s; scoring 0", game_type, missing)
        return assemble(
            scores,
            config.final_weights,
            self.extractor.raw_stats(raw_data),
            clamp=True,
            formula_details=details,
        )


__all__ = ["DynamicFormulaCalculator"]
