"""Exception hierarchy raised by the scoring engine and the AI adapter."""
from __future__ import annotations

from typing import List, Sequence, Tuple


class ScoringError(Exception):
    """Base class for every failure surfaced to callers of the engine."""


class ConfigurationError(ScoringError):
    pass


class UnknownGameTypeError(ConfigurationError):
    def __init__(self, game_type: str):
        super().__init__(f"Unknown game type: {game_type}")
        self.game_type = game_type


class MissingAIScoresError(ScoringError):
    def __init__(self, game_type: str):
        super().__init__(
            f"{game_type} requires AI scoring. Call /api/ai/score first and pass ai_scores."
        )
        self.game_type = game_type


class AIScoringError(ScoringError):
    pass


class AIResponseParseError(AIScoringError):
    pass


class AIAbortError(AIScoringError):
    """Non-retryable remote failure (auth, billing, transport); stops the cascade."""

    def __init__(self, strategy: str, model: str, cause: BaseException):
        super().__init__(f"AI scoring failed on {strategy}:{model}: {cause}")
        self.strategy = strategy
        self.model = model
        self.cause = cause


class AICascadeExhaustedError(AIScoringError):
    def __init__(self, attempts: Sequence[Tuple[str, str, str]]):
        tried = ", ".join(f"{s}:{m}" for s, m, _ in attempts) or "none"
        super().__init__(f"AI scoring failed: no model available (tried {tried})")
        self.attempts: List[Tuple[str, str, str]] = list(attempts)


__all__ = [
    "ScoringError",
    "ConfigurationError",
    "UnknownGameTypeError",
    "MissingAIScoresError",
    "AIScoringError",
    "AIResponseParseError",
    "AIAbortError",
    "AICascadeExhaustedError",
]
