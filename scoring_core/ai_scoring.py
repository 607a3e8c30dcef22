"""AI-backed competency scoring for open-text games.

The remote evaluator is any OpenAI-compatible chat-completions endpoint. Each
model in ``AISettings.models`` is tried in order, first through the managed
``openai`` client and, when that fails with a routing/version mismatch
(404 or a model/deployment complaint), through a plain HTTP request to the
same endpoint. Every other failure stops the cascade at once.
"""
from __future__ import annotations

import json
import logging
import math
import random
import re
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import httpx
import openai

from . import ai_cfg
from .ai_cfg import AISettings
from .ai_prompt import build_prompt
from .aggregator import clamp_score
from .config import AI_FEEDBACK_PLACEHOLDER, MOCK_FEEDBACK, MOCK_SCORE_MAX, MOCK_SCORE_MIN
from .errors import AIAbortError, AICascadeExhaustedError, AIResponseParseError
from .types import ScoringConfig

log = logging.getLogger(__name__)

CLIENT = "client"
DIRECT = "direct"

_ROUTING_RX = re.compile(
    r"\b(model|deployment|api[ _-]?version)\b|not\s+(found|supported)|unsupported",
    re.I,
)

_REMOTE_ERRORS = (openai.OpenAIError, httpx.HTTPError, AIResponseParseError, ValueError)

AIScores = Dict[str, Union[float, str]]


def is_routing_error(exc: BaseException) -> bool:
    """True when the endpoint rejected the model/version rather than the caller."""
    status: Optional[int] = None
    message = str(exc)
    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
    elif isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        message = f"{message} {exc.response.text}"
    if status == 404:
        return True
    return status == 400 and bool(_ROUTING_RX.search(message))


def extract_json(text: str) -> Optional[Dict[str, Any]]:
    """Return the first well-formed JSON object in ``text``."""
    if not isinstance(text, str):
        return None
    body = text.strip()
    try:
        obj = json.loads(body)
    except ValueError:
        obj = None
    if isinstance(obj, dict):
        return obj
    decoder = json.JSONDecoder()
    for m in re.finditer(r"\{", body):
        try:
            obj, _ = decoder.raw_decode(body, m.start())
        except ValueError:
            continue
        if isinstance(obj, dict):
            return obj
    return None


def _coerce(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        out = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return out if math.isfinite(out) else 0.0


def parse_scores(text: str, competencies: Sequence[str]) -> AIScores:
    data = extract_json(text)
    if data is None:
        raise AIResponseParseError("Could not parse AI response as JSON")
    out: AIScores = {name: clamp_score(_coerce(data.get(name))) for name in competencies}
    feedback = data.get("feedback")
    out["feedback"] = feedback.strip() if isinstance(feedback, str) and feedback.strip() else AI_FEEDBACK_PLACEHOLDER
    return out


class AIScoringAdapter:
    def __init__(
        self,
        settings: Optional[AISettings] = None,
        client_factory: Optional[Callable[[AISettings], Any]] = None,
        http_client: Optional[httpx.Client] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings if settings is not None else ai_cfg.settings()
        self._client_factory = client_factory or ai_cfg.client
        self._http = http_client
        self._rng = rng or random.Random()

    def attempts(self) -> List[Tuple[str, str]]:
        return [(strategy, model) for model in self.settings.models for strategy in (CLIENT, DIRECT)]

    def score_response(
        self,
        game_type: str,
        response_data: Mapping[str, Any],
        config: Union[ScoringConfig, Mapping[str, Any]],
    ) -> AIScores:
        cfg = config if isinstance(config, ScoringConfig) else ScoringConfig.from_dict(config)
        competencies = list(cfg.final_weights)
        if not self.settings.configured:
            log.warning("AI_API_KEY not configured; using mock AI scores for %s", game_type)
            return self.mock_scores(competencies)
        prompt = build_prompt(game_type, response_data or {}, cfg.ai_prompts, competencies)
        return parse_scores(self.complete(prompt, game_type=game_type), competencies)

    def mock_scores(self, competencies: Sequence[str]) -> AIScores:
        lo, hi = MOCK_SCORE_MIN, max(MOCK_SCORE_MIN + 1, MOCK_SCORE_MAX)
        out: AIScores = {name: float(self._rng.randrange(lo, hi)) for name in competencies}
        out["feedback"] = MOCK_FEEDBACK
        return out

    def complete(self, prompt: str, game_type: str = "") -> str:
        """Run the model cascade and return the first generated text."""
        failures: List[Tuple[str, str, str]] = []
        client = None
        for strategy, model in self.attempts():
            t0 = time.time()
            try:
                if strategy == CLIENT:
                    if client is None:
                        client = self._client_factory(self.settings)
                    text = self._call_client(client, model, prompt)
                else:
                    text = self._call_direct(model, prompt)
            except _REMOTE_ERRORS as e:
                self._audit(game_type, strategy, model, t0, error=str(e))
                if is_routing_error(e):
                    log.warning("AI %s call to %s unavailable: %s", strategy, model, e)
                    failures.append((strategy, model, str(e)))
                    continue
                log.error("AI %s call to %s failed, aborting cascade: %s", strategy, model, e)
                raise AIAbortError(strategy, model, e) from e
            self._audit(game_type, strategy, model, t0)
            log.info("AI scores produced by %s via %s", model, strategy)
            return text
        raise AICascadeExhaustedError(failures)

    def _call_client(self, client: Any, model: str, prompt: str) -> str:
        resp = client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
        )
        text = resp.choices[0].message.content if resp.choices else None
        if not text:
            raise AIResponseParseError(f"No response text from {model}")
        return text

    def _call_direct(self, model: str, prompt: str) -> str:
        url = f"{self.settings.base_url}/chat/completions"
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.settings.api_key}"}
        if self._http is not None:
            resp = self._http.post(url, json=payload, headers=headers)
        else:
            with httpx.Client(timeout=self.settings.timeout_sec) as http:
                resp = http.post(url, json=payload, headers=headers)
        resp.raise_for_status()
        data = resp.json()
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise AIResponseParseError(f"No response text from {model}") from None
        if not text:
            raise AIResponseParseError(f"No response text from {model}")
        return text

    def _audit(self, game_type: str, strategy: str, model: str, t0: float, error: str = "") -> None:
        path = self.settings.log_path
        if not path:
            return
        row = {
            "ts": round(time.time(), 3),
            "game_type": game_type,
            "strategy": strategy,
            "model": model,
            "ok": not error,
            "error": error[:500],
            "rt_ms": int((time.time() - t0) * 1000),
        }
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(row, ensure_ascii=False) + "\n")
        except OSError as e:
            log.warning("could not write AI audit log %s: %s", path, e)


__all__ = [
    "AIScoringAdapter",
    "CLIENT",
    "DIRECT",
    "extract_json",
    "is_routing_error",
    "parse_scores",
]
