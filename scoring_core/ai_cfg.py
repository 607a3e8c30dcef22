# scoring_core/ai_cfg.py
from __future__ import annotations
import os, json, pathlib
from dataclasses import dataclass
from openai import OpenAI

from .config import AI_DEFAULT_BASE_URL, AI_DEFAULT_MODELS, AI_MAX_TOKENS, AI_TEMPERATURE, AI_TIMEOUT_SEC

@dataclass(frozen=True)
class AISettings:
    api_key: str
    base_url: str = AI_DEFAULT_BASE_URL
    models: tuple[str, ...] = AI_DEFAULT_MODELS
    temperature: float = AI_TEMPERATURE
    max_tokens: int = AI_MAX_TOKENS
    timeout_sec: float = AI_TIMEOUT_SEC
    log_path: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

def _split_models(raw: str) -> tuple[str, ...]:
    return tuple(m.strip() for m in raw.split(",") if m.strip())

def _from_env() -> dict[str, str]:
    return {
        "api_key":  os.getenv("AI_API_KEY", "") or os.getenv("GEMINI_API_KEY", ""),
        "base_url": os.getenv("AI_BASE_URL", ""),
        "models":   os.getenv("AI_MODELS", ""),
        "log_path": os.getenv("AI_LOG_PATH", ""),
    }

def _from_json(path: str = ".ai_config.json") -> dict[str, str]:
    p = pathlib.Path(path)
    if not p.exists(): return {}
    try:
        j = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    models = j.get("models", "")
    if isinstance(models, list):
        models = ",".join(str(m) for m in models)
    return {
        "api_key":  str(j.get("api_key", "")),
        "base_url": str(j.get("base_url", "")),
        "models":   str(models),
        "log_path": str(j.get("log_path", "")),
    }

def settings(path: str = ".ai_config.json") -> AISettings:
    """Env first, then the JSON file for anything env leaves empty. A missing key is allowed."""
    cfg = _from_env()
    if not all(cfg.values()):
        for k, v in _from_json(path).items():
            if not cfg.get(k): cfg[k] = v
    return AISettings(
        api_key=cfg["api_key"],
        base_url=(cfg["base_url"] or AI_DEFAULT_BASE_URL).rstrip("/"),
        models=_split_models(cfg["models"]) or AI_DEFAULT_MODELS,
        timeout_sec=AI_TIMEOUT_SEC,
        log_path=cfg["log_path"],
    )

def client(s: AISettings) -> OpenAI:
    return OpenAI(api_key=s.api_key, base_url=s.base_url, timeout=s.timeout_sec, max_retries=0)
