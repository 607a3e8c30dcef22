"""Entry point that routes a scoring request to the right calculator."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from .calculators import CALCULATORS, ai_game
from .dynamic import DynamicFormulaCalculator
from .errors import ConfigurationError, MissingAIScoresError, UnknownGameTypeError
from .types import AI_SCORED_GAMES, FinalScoreResult, GameType, ScoringConfig

log = logging.getLogger(__name__)


class ScoringEngine:
    """
    Stateless scoring service; one instance can serve concurrent callers.

    Routing order:
      1. AI-scored games weight the caller-supplied ``ai_scores``.
      2. A config with ``competency_formulas`` takes the dynamic path
         (any game type, including ones the engine has no calculator for).
      3. Built-in games use their fixed-formula calculator.
    """

    def __init__(self, dynamic: Optional[DynamicFormulaCalculator] = None):
        self.dynamic = dynamic or DynamicFormulaCalculator()

    def calculate_scores(
        self,
        game_type: Union[str, GameType],
        raw_data: Any,
        config: Union[ScoringConfig, Mapping[str, Any]],
        ai_scores: Optional[Mapping[str, Any]] = None,
    ) -> FinalScoreResult:
        cfg = config if isinstance(config, ScoringConfig) else ScoringConfig.from_dict(config)
        name = game_type.value if isinstance(game_type, GameType) else str(game_type)
        gt = GameType.parse(game_type)

        if gt is None and not cfg.competency_formulas:
            raise UnknownGameTypeError(name)
        if not cfg.final_weights:
            raise ConfigurationError(f"{name}: scoring config has no final_weights")

        if gt in AI_SCORED_GAMES:
            if ai_scores is None:
                raise MissingAIScoresError(name)
            log.info("scoring %s from AI scores", name)
            return ai_game(raw_data, cfg, ai_scores)

        if cfg.competency_formulas:
            log.info("scoring %s with %d configured formulas", name, len(cfg.competency_formulas))
            return self.dynamic.calculate(name, raw_data, cfg)

        log.info("scoring %s with built-in formulas", name)
        return CALCULATORS[gt](raw_data, cfg, ai_scores)


__all__ = ["ScoringEngine"]
