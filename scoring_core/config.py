from __future__ import annotations
import os, json, pathlib, random


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


SCORE_MIN: float = 0.0
SCORE_MAX: float = 100.0
ROUND_DIGITS: int = 2

# per-item games
DEFAULT_TIME_LIMIT: float = 5.0
STROOP_MAX_TIME: float = 5.0
STROOP_SPEED_SLOPE: float = 40.0
STROOP_INTERFERENCE_PENALTY: float = 5.0
FACE_NAME_MAX_TIME: float = 10.0
STAMINA_STDDEV_FACTOR: float = 10.0

# cumulative-counter games
SUDOKU_INCORRECT_PENALTY: float = 3.0
SUDOKU_TOTAL_TIME: float = 60.0
CARD_FLIP_TOTAL_PAIRS: int = 10
CARD_FLIP_TOTAL_FLIPS: int = 20
CARD_FLIP_TIME_LIMIT: float = 60.0
CARD_FLIP_STRATEGY_FOUND: float = 100.0
CARD_FLIP_STRATEGY_MISSED: float = 50.0
LUCKY_FLIP_TOTAL_ROUNDS: int = 10
LUCKY_FLIP_STARTING_CREDITS: float = 100.0
LUCKY_FLIP_BUST_PENALTY: float = 10.0
LUCKY_FLIP_OPTIMAL_STOP_BONUS: float = 5.0
VOCAB_TIME_LIMIT: float = 60.0
AI_PLACEHOLDER_SCORE: float = 50.0

# remote evaluator
AI_DEFAULT_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai"
AI_DEFAULT_MODELS: tuple[str, ...] = ("gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.5-pro")
AI_TEMPERATURE: float = 0.7
AI_MAX_TOKENS: int = 1024
AI_TIMEOUT_SEC: float = 30.0
AI_FEEDBACK_PLACEHOLDER: str = "No feedback provided"
MOCK_SCORE_MIN: int = 50
MOCK_SCORE_MAX: int = 90
MOCK_FEEDBACK: str = "Mock scores - configure AI_API_KEY for real AI evaluation"

# // env overrides for staging/ops
AI_TEMPERATURE = _env_float("AI_TEMPERATURE", AI_TEMPERATURE)
AI_MAX_TOKENS = _env_int("AI_MAX_TOKENS", AI_MAX_TOKENS)
AI_TIMEOUT_SEC = _env_float("AI_TIMEOUT_SEC", AI_TIMEOUT_SEC)
MOCK_SCORE_MIN = _env_int("MOCK_SCORE_MIN", MOCK_SCORE_MIN)
MOCK_SCORE_MAX = _env_int("MOCK_SCORE_MAX", MOCK_SCORE_MAX)


def load_config(path: str = "config.json") -> dict:
    cfg = {}
    p = pathlib.Path(path)
    if p.exists():
        try:
            cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            cfg = {}
    seed = os.getenv("SEED")
    if seed: cfg["SEED"] = _env_int("SEED", 0)
    return cfg


def make_rng(cfg: dict | None = None) -> random.Random:
    s = (cfg or {}).get("SEED")
    return random.Random(int(s)) if s is not None else random.Random()
