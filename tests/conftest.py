from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest

from scoring_core.ai_cfg import AISettings
from scoring_core.types import ScoringConfig


def build_trials(
    outcomes: list[bool],
    times: list[float],
    **extra_fields,
) -> list[dict]:
    """Per-item telemetry; ``extra_fields`` maps field name -> per-item values."""

    rows: list[dict] = []
    for idx, (ok, t) in enumerate(zip(outcomes, times)):
        row = {"is_correct": ok, "time_taken": t}
        for key, values in extra_fields.items():
            row[key] = values[idx]
        rows.append(row)
    return rows


def build_config(weights: dict[str, float], **kwargs) -> ScoringConfig:
    return ScoringConfig.from_dict({"final_weights": weights, **kwargs})


def ai_settings(**overrides) -> AISettings:
    base = {
        "api_key": "test-key",
        "base_url": "https://llm.example.test/v1",
        "models": ("model-a", "model-b"),
    }
    base.update(overrides)
    return AISettings(**base)


@pytest.fixture
def math_config() -> ScoringConfig:
    return build_config(
        {"accuracy": 0.3, "speed": 0.2, "quantitative_aptitude": 0.3, "mental_stamina": 0.2},
        settings={"time_limit": 5, "accuracy_mode": "binary"},
    )


@pytest.fixture
def sudoku_config() -> ScoringConfig:
    return build_config(
        {"accuracy": 0.3, "reasoning": 0.2, "attention_to_detail": 0.2, "speed": 0.15, "math": 0.15},
        penalties={"incorrect_penalty_points": 3},
    )


LLM_URL = "https://llm.example.test/v1/chat/completions"


def status_error(cls, status: int, message: str = "error"):
    """An ``openai`` status error carrying a fake HTTP response."""
    response = httpx.Response(status, request=httpx.Request("POST", LLM_URL))
    return cls(message, response=response, body=None)


class FakeClient:
    """Stands in for the ``openai`` client; ``outcomes`` maps model -> text or exception."""

    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.calls: list[str] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, *, model, messages, temperature, max_tokens):
        self.calls.append(model)
        outcome = self.outcomes[model]
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=outcome))])
