"""Built-in per-game scoring algorithms.

Each calculator maps raw telemetry to named competency values with closed-form
arithmetic and hands them to :func:`aggregator.assemble`. Zero denominators
always resolve to 0. Raw values are left unclamped unless a formula clamps
them itself (sudoku), so stored results stay comparable with earlier runs.
"""
from __future__ import annotations

import math
from statistics import pstdev
from typing import Any, Callable, Dict, Mapping, Optional

from . import config as C
from .aggregator import assemble, clamp_score
from .types import FIXED_FORMULA_GAMES, FinalScoreResult, GameType, ScoringConfig
from .variables import clamp, num, trials


Calculator = Callable[[Any, ScoringConfig, Optional[Mapping[str, float]]], FinalScoreResult]


def _ratio(a: float, b: float) -> float:
    return a / b if b else 0.0


def _setting(config: ScoringConfig, key: str, default: float) -> float:
    return num(config.settings, key, default)


def _given(record: Mapping[str, Any], key: str) -> Optional[float]:
    """Explicitly supplied finite number, zero included; None otherwise."""
    x = record.get(key)
    if not isinstance(x, (int, float)) or isinstance(x, bool):
        return None
    try:
        out = float(x)
    except OverflowError:
        return None
    return out if math.isfinite(out) else None


def _accuracy_pct(items) -> float:
    return _ratio(sum(1 for r in items if r.get("is_correct")), len(items)) * 100


def _graded_accuracy(items) -> float:
    if not items:
        return 0.0
    err = 0.0
    for r in items:
        user, want = num(r, "user_answer"), num(r, "correct_answer")
        if want:
            err += abs(user - want) / abs(want)
        else:
            err += 0.0 if user == want else 1.0
    return max(0.0, 100 - err / len(items) * 100)


def _timed_speed(avg_time: float, time_limit: float) -> float:
    if time_limit <= 0:
        return 0.0
    return max(0.0, (time_limit - avg_time) / time_limit * 100)


def mental_math_sprint(raw_data: Any, config: ScoringConfig, ai_scores=None) -> FinalScoreResult:
    items = trials(raw_data)
    times = [num(r, "time_taken") for r in items]
    mode = str(config.settings.get("accuracy_mode") or "binary").lower()
    accuracy = _graded_accuracy(items) if mode == "graded" else _accuracy_pct(items)

    total_time = sum(times)
    avg_time = _ratio(total_time, len(items))
    time_limit = _setting(config, "time_limit", C.DEFAULT_TIME_LIMIT)
    speed = _timed_speed(avg_time, time_limit)
    std = pstdev(times) if times else 0.0

    raw = {
        "accuracy": accuracy,
        "speed": speed,
        "quantitative_aptitude": accuracy * 0.7 + speed * 0.3,
        "mental_stamina": speed * 0.5 + max(0.0, 100 - std * C.STAMINA_STDDEV_FACTOR),
    }
    stats = {
        "total_questions": len(items),
        "correct_answers": sum(1 for r in items if r.get("is_correct")),
        "total_time": round(total_time, 2),
        "avg_time_per_question": round(avg_time, 2),
    }
    return assemble(raw, config.final_weights, stats)


def stroop_test(raw_data: Any, config: ScoringConfig, ai_scores=None) -> FinalScoreResult:
    items = trials(raw_data)
    correct = sum(1 for r in items if r.get("is_correct"))
    accuracy = _ratio(correct, len(items)) * 100
    avg_time = _ratio(sum(num(r, "time_taken") for r in items), len(items))
    max_time = _setting(config, "max_time", C.STROOP_MAX_TIME)
    speed = max(0.0, 100 - _ratio(avg_time, max_time) * C.STROOP_SPEED_SLOPE)
    interference_errors = sum(1 for r in items if r.get("is_interference") and not r.get("is_correct"))

    raw = {
        "cognitive_flexibility": max(0.0, 100 - interference_errors * C.STROOP_INTERFERENCE_PENALTY),
        "cognitive_agility": accuracy * 0.6 + speed * 0.4,
        "accuracy": accuracy,
        "speed": speed,
    }
    stats = {
        "total_items": len(items),
        "correct_responses": correct,
        "avg_response_time": round(avg_time, 2),
    }
    return assemble(raw, config.final_weights, stats)


def face_name_match(raw_data: Any, config: ScoringConfig, ai_scores=None) -> FinalScoreResult:
    items = trials(raw_data)
    correct = sum(1 for r in items if r.get("is_correct"))
    accuracy = _ratio(correct, len(items)) * 100
    avg_time = _ratio(sum(num(r, "time_taken") for r in items), len(items))
    max_time = _setting(config, "max_time", C.FACE_NAME_MAX_TIME)
    speed = max(0.0, 100 * (1 - _ratio(avg_time, max_time))) if max_time > 0 else 0.0
    retention = accuracy  # recall-phase accuracy is not tracked separately yet

    raw = {
        "memory": retention * 0.4 + accuracy * 0.3 + speed * 0.3,
        "accuracy": accuracy,
        "speed": speed,
    }
    stats = {
        "total_attempts": len(items),
        "correct_matches": correct,
        "avg_time_per_response": round(avg_time, 2),
    }
    return assemble(raw, config.final_weights, stats)


def sign_sudoku(raw_data: Any, config: ScoringConfig, ai_scores=None) -> FinalScoreResult:
    rd = raw_data if isinstance(raw_data, Mapping) else {}
    pen = config.penalties
    correct = num(rd, "correct_entries")
    incorrect = num(rd, "incorrect_entries")
    total_empty = num(rd, "total_empty_cells")
    if total_empty <= 0:
        grid = num(rd, "grid_size")
        total_empty = grid * grid
        if not math.isfinite(total_empty):
            total_empty = 0.0
    time_left = num(rd, "time_left_sec")
    total_time = num(rd, "total_time_allowed", C.SUDOKU_TOTAL_TIME)
    avg_per_correct = num(rd, "avg_time_per_correct_entry")
    multiplier = num(rd, "difficulty_multiplier", 1.0)
    attempts = num(rd, "total_attempts") or (correct + incorrect)

    completion = _given(rd, "completion_percent")
    if completion is None:
        completion = _ratio(correct, total_empty) * 100
    completion = clamp(completion)

    base_accuracy = _given(rd, "accuracy_percent")
    if base_accuracy is None:
        base_accuracy = _ratio(correct, total_empty) * 100
    penalty = pen.get("incorrect_penalty_points", pen.get("incorrect_penalty", C.SUDOKU_INCORRECT_PENALTY))
    accuracy = clamp(base_accuracy - incorrect * penalty)

    if attempts > 0:
        reasoning = _ratio(correct, attempts) * 100 * multiplier
    else:
        reasoning = completion * multiplier

    time_left_pct = _ratio(time_left, total_time) * 100
    baseline = _ratio(total_time, total_empty) if total_empty > 0 else (total_time or 1.0)
    avg_penalty = min(100.0, _ratio(avg_per_correct, baseline) * 100) if avg_per_correct > 0 else 0.0
    speed = clamp(time_left_pct * 0.6 + (100 - avg_penalty) * 0.4)

    first_pct = _ratio(num(rd, "correct_first_attempts"), total_empty) * 100

    raw = {
        "accuracy": accuracy,
        "reasoning": reasoning,
        "attention_to_detail": accuracy * 0.6 + first_pct * 0.4,
        "speed": speed,
        "math": completion,
    }
    stats = {
        "correct_entries": correct,
        "incorrect_entries": incorrect,
        "time_left": time_left,
        "completion_percent": round(completion, 2),
    }
    return assemble(raw, config.final_weights, stats)


def card_flip_challenge(raw_data: Any, config: ScoringConfig, ai_scores=None) -> FinalScoreResult:
    rd = raw_data if isinstance(raw_data, Mapping) else {}
    correct_pairs = num(rd, "correct_pairs")
    total_pairs = num(rd, "total_pairs", C.CARD_FLIP_TOTAL_PAIRS)
    total_flips = num(rd, "total_flips", C.CARD_FLIP_TOTAL_FLIPS)
    min_flips = num(rd, "minimum_flips", total_pairs * 2)
    time_taken = num(rd, "time_taken")
    time_limit = num(rd, "time_limit", _setting(config, "time_limit", C.CARD_FLIP_TIME_LIMIT))
    discovered = bool(rd.get("pattern_discovered", False))

    pattern = _ratio(correct_pairs, total_pairs) * 100
    efficiency = _ratio(min_flips, total_flips) * 100
    raw = {
        "pattern_recognition": pattern,
        "reasoning": efficiency * 0.5 + pattern * 0.5,
        "strategy": C.CARD_FLIP_STRATEGY_FOUND if discovered else C.CARD_FLIP_STRATEGY_MISSED,
        "speed": _timed_speed(time_taken, time_limit),
    }
    stats = {
        "correct_pairs": correct_pairs,
        "total_flips": total_flips,
        "time_taken": time_taken,
        "pattern_discovered": discovered,
    }
    return assemble(raw, config.final_weights, stats)


def lucky_flip(raw_data: Any, config: ScoringConfig, ai_scores=None) -> FinalScoreResult:
    rd = raw_data if isinstance(raw_data, Mapping) else {}
    rounds = num(rd, "rounds_completed")
    total_rounds = num(rd, "total_rounds", C.LUCKY_FLIP_TOTAL_ROUNDS)
    busts = num(rd, "times_went_bust")
    stops = num(rd, "voluntary_stops_at_optimal_points")
    final_credits = num(rd, "final_credits")
    starting = num(rd, "starting_credits", C.LUCKY_FLIP_STARTING_CREDITS)
    bust_penalty = config.penalties.get("bust_penalty") or C.LUCKY_FLIP_BUST_PENALTY
    stop_bonus = config.bonuses.get("optimal_stop_bonus") or C.LUCKY_FLIP_OPTIMAL_STOP_BONUS

    drive = max(0.0, _ratio(rounds, total_rounds) * 100 - busts * bust_penalty + stops * stop_bonus)
    raw: Dict[str, float] = {"drive": drive}
    flags: Dict[str, Dict[str, bool]] = {}
    for name in ("risk_appetite", "reasoning"):
        if ai_scores and name in ai_scores:
            raw[name] = clamp_score(ai_scores[name])
            flags[name] = {"scored_by_ai": True}
        else:
            raw[name] = C.AI_PLACEHOLDER_SCORE
            flags[name] = {"requires_ai": True}
    stats = {
        "rounds_completed": rounds,
        "times_went_bust": busts,
        "final_credits": final_credits,
        "profit_loss": final_credits - starting,
    }
    return assemble(raw, config.final_weights, stats, flags=flags)


def vocab_challenge(raw_data: Any, config: ScoringConfig, ai_scores=None) -> FinalScoreResult:
    rd = raw_data if isinstance(raw_data, Mapping) else {}
    valid = num(rd, "unique_valid_words")
    entered = num(rd, "total_words_entered", 1.0)
    time_taken = num(rd, "time_taken", 1.0)
    time_limit = num(rd, "time_limit", _setting(config, "time_limit", C.VOCAB_TIME_LIMIT))

    raw = {
        "vocabulary": _ratio(valid, entered) * 100,
        "speed": min(100.0, _ratio(valid, time_limit) * 100),
    }
    stats = {
        "unique_valid_words": valid,
        "total_words_entered": entered,
        "time_taken": time_taken,
    }
    return assemble(raw, config.final_weights, stats)


def ai_game(raw_data: Any, config: ScoringConfig, ai_scores: Mapping[str, Any]) -> FinalScoreResult:
    """Weight externally produced AI scores; raw values are clamped into [0, 100]."""
    text = raw_data.get("response_text") if isinstance(raw_data, Mapping) else None
    flags = {name: {"scored_by_ai": True} for name in config.final_weights}
    stats = {
        "response_length": len(text) if isinstance(text, str) else 0,
        "ai_evaluated": True,
    }
    scores = {k: v for k, v in ai_scores.items() if k != "feedback"}
    return assemble(scores, config.final_weights, stats, flags=flags, clamp=True)


CALCULATORS: Dict[GameType, Calculator] = {
    GameType.MENTAL_MATH_SPRINT: mental_math_sprint,
    GameType.STROOP_TEST: stroop_test,
    GameType.FACE_NAME_MATCH: face_name_match,
    GameType.SIGN_SUDOKU: sign_sudoku,
    GameType.CARD_FLIP_CHALLENGE: card_flip_challenge,
    GameType.LUCKY_FLIP: lucky_flip,
    GameType.VOCAB_CHALLENGE: vocab_challenge,
}

if set(CALCULATORS) != FIXED_FORMULA_GAMES:
    raise RuntimeError("fixed-formula calculator table does not cover every built-in game")


__all__ = ["CALCULATORS", "ai_game"] + [g.value for g in CALCULATORS]
