"""Flatten raw game telemetry into the variable mapping consumed by formulas."""
from __future__ import annotations

import logging
import math
from statistics import pstdev
from typing import Any, Dict, List, Mapping

from .config import DEFAULT_TIME_LIMIT, SUDOKU_TOTAL_TIME, CARD_FLIP_TIME_LIMIT
from .types import GameType, ScoringConfig, VariableMapping

log = logging.getLogger(__name__)


def num(record: Any, key: str, default: float = 0.0) -> float:
    """Numeric field lookup; missing, falsy or malformed values fall back to ``default``."""
    if not isinstance(record, Mapping):
        return float(default)
    val = record.get(key)
    if isinstance(val, bool):
        return 1.0 if val else float(default)
    try:
        out = float(val)
    except (TypeError, ValueError, OverflowError):
        return float(default)
    if not math.isfinite(out) or out == 0.0:
        return float(default)
    return out


def trials(raw_data: Any) -> List[Mapping[str, Any]]:
    """Per-item records of a list-shaped payload; anything else yields no trials."""
    if not isinstance(raw_data, (list, tuple)):
        return []
    return [r for r in raw_data if isinstance(r, Mapping)]


def clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, x))


_COMMON_VARIABLES: Dict[str, str] = {
    "total": "Total number of questions",
    "correct": "Number of correct answers",
    "incorrect": "Number of incorrect answers",
    "accuracy_percent": "Accuracy percentage (0-100)",
    "total_time": "Total time taken for all questions",
    "avg_time": "Average time per question",
    "min_time": "Fastest question time",
    "max_time": "Slowest question time",
    "time_std_dev": "Standard deviation of response times",
    "time_limit": "Time limit per question",
    "time_left": "Average time remaining per question",
}

_GAME_VARIABLES: Dict[GameType, Dict[str, str]] = {
    GameType.STROOP_TEST: {
        "interference_items": "Number of interference items",
        "interference_correct": "Correct interference answers",
        "interference_errors": "Incorrect interference answers",
        "interference_accuracy": "Interference accuracy percentage",
    },
    GameType.SIGN_SUDOKU: {
        "correct_entries": "Number of correct entries",
        "incorrect_entries": "Number of incorrect entries",
        "total_empty_cells": "Total empty cells to fill",
        "time_left_sec": "Time remaining in seconds",
        "total_time_allowed": "Total time allowed",
        "total_attempts": "Total number of attempts",
        "avg_time_per_correct_entry": "Average time per correct entry",
        "difficulty_multiplier": "Difficulty multiplier (1.0, 1.5, 2.0)",
        "correct_first_attempts": "Correct on first try",
        "completion_percent": "Completion percentage",
        "accuracy_percent": "Accuracy percentage",
    },
    GameType.FACE_NAME_MATCH: {
        "learning_phase_items": "Items in learning phase",
        "recall_phase_items": "Items in recall phase",
        "new_face_items": "Number of new faces",
        "new_face_correct": "Correct new face identifications",
        "learned_face_items": "Number of learned faces",
        "learned_face_correct": "Correct learned face identifications",
    },
    GameType.CARD_FLIP_CHALLENGE: {
        "correct_pairs": "Number of correct pairs matched",
        "total_pairs": "Total pairs in game",
        "total_flips": "Total number of flips",
        "minimum_flips": "Minimum flips needed",
        "time_taken": "Total time taken",
        "time_limit": "Time limit",
        "efficiency": "Efficiency percentage",
    },
}


class VariableExtractor:
    def extract(self, game_type: str, raw_data: Any, config: ScoringConfig) -> VariableMapping:
        variables: VariableMapping = {}
        if isinstance(raw_data, (list, tuple)):
            self._array_variables(variables, trials(raw_data), config)
        elif isinstance(raw_data, Mapping):
            self._passthrough(variables, raw_data)

        gt = GameType.parse(game_type)
        if gt is GameType.STROOP_TEST:
            self._stroop(variables, raw_data)
        elif gt is GameType.SIGN_SUDOKU:
            self._sudoku(variables, raw_data)
        elif gt is GameType.FACE_NAME_MATCH:
            self._face_name(variables, raw_data)
        elif gt is GameType.CARD_FLIP_CHALLENGE:
            self._card_flip(variables, raw_data)

        log.debug("extracted variables for %s: %s", game_type, variables)
        return variables

    def available_variables(self, game_type: str) -> Dict[str, Dict[str, str]]:
        gt = GameType.parse(game_type)
        specific = _GAME_VARIABLES.get(gt, {}) if gt is not None else {}
        return {"common": dict(_COMMON_VARIABLES), "specific": dict(specific)}

    def raw_stats(self, raw_data: Any) -> Dict[str, float]:
        if isinstance(raw_data, (list, tuple)):
            items = trials(raw_data)
            total_time = sum(num(r, "time_taken") for r in items)
            return {
                "total_attempts": len(items),
                "correct_answers": sum(1 for r in items if r.get("is_correct")),
                "total_time": total_time,
                "avg_time_per_response": total_time / len(items) if items else 0.0,
            }
        return {
            "correct_entries": num(raw_data, "correct_entries"),
            "incorrect_entries": num(raw_data, "incorrect_entries"),
            "time_taken": num(raw_data, "time_taken"),
        }

    # ---- shapes ----

    @staticmethod
    def _array_variables(v: VariableMapping, items: List[Mapping[str, Any]], config: ScoringConfig) -> None:
        total = len(items)
        correct = sum(1 for r in items if r.get("is_correct"))
        times = [num(r, "time_taken") for r in items]
        v["total"] = float(total)
        v["correct"] = float(correct)
        v["incorrect"] = float(total - correct)
        v["accuracy_percent"] = correct / total * 100 if total else 0.0
        v["total_time"] = sum(times)
        v["avg_time"] = v["total_time"] / total if total else 0.0
        v["min_time"] = min(times) if times else 0.0
        v["max_time"] = max(times) if times else 0.0
        v["time_std_dev"] = pstdev(times) if times else 0.0
        v["time_limit"] = num(config.settings, "time_limit", DEFAULT_TIME_LIMIT)
        v["time_left"] = max(0.0, v["time_limit"] - v["avg_time"])

    @staticmethod
    def _passthrough(v: VariableMapping, record: Mapping[str, Any]) -> None:
        for k, val in record.items():
            if isinstance(val, bool):
                v[str(k)] = 1.0 if val else 0.0
            elif isinstance(val, (int, float)):
                try:
                    out = float(val)
                except OverflowError:
                    continue
                if math.isfinite(out):
                    v[str(k)] = out

    # ---- game specific ----

    @staticmethod
    def _stroop(v: VariableMapping, raw_data: Any) -> None:
        items = [r for r in trials(raw_data) if r.get("is_interference")]
        hit = sum(1 for r in items if r.get("is_correct"))
        v["interference_items"] = float(len(items))
        v["interference_correct"] = float(hit)
        v["interference_errors"] = float(len(items) - hit)
        v["interference_accuracy"] = hit / len(items) * 100 if items else 0.0

    @staticmethod
    def _sudoku(v: VariableMapping, raw: Any) -> None:
        v.update({
            "correct_entries": num(raw, "correct_entries"),
            "incorrect_entries": num(raw, "incorrect_entries"),
            "total_empty_cells": num(raw, "total_empty_cells"),
            "time_left_sec": num(raw, "time_left_sec"),
            "total_time_allowed": num(raw, "total_time_allowed", SUDOKU_TOTAL_TIME),
            "total_attempts": num(raw, "total_attempts"),
            "avg_time_per_correct_entry": num(raw, "avg_time_per_correct_entry"),
            "difficulty_multiplier": num(raw, "difficulty_multiplier", 1.0),
            "correct_first_attempts": num(raw, "correct_first_attempts"),
        })
        empty = max(0.0, v["total_empty_cells"])
        if empty > 0:
            completion = v["correct_entries"] / empty * 100
            accuracy = (v["correct_entries"] - v["incorrect_entries"]) / empty * 100
            v["completion_percent"] = clamp(completion)
            v["accuracy_percent"] = clamp(accuracy)
        else:
            v["completion_percent"] = 0.0
            v["accuracy_percent"] = 0.0
        if not v["total_attempts"]:
            v["total_attempts"] = v["correct_entries"] + v["incorrect_entries"]

    @staticmethod
    def _face_name(v: VariableMapping, raw_data: Any) -> None:
        items = trials(raw_data)
        new = [r for r in items if r.get("is_new_face")]
        learned = [r for r in items if not r.get("is_new_face")]
        v["learning_phase_items"] = float(sum(1 for r in items if r.get("phase") == "learning"))
        v["recall_phase_items"] = float(sum(1 for r in items if r.get("phase") == "recall"))
        v["new_face_items"] = float(len(new))
        v["new_face_correct"] = float(sum(1 for r in new if r.get("is_correct")))
        v["learned_face_items"] = float(len(learned))
        v["learned_face_correct"] = float(sum(1 for r in learned if r.get("is_correct")))

    @staticmethod
    def _card_flip(v: VariableMapping, raw: Any) -> None:
        v.update({
            "correct_pairs": num(raw, "correct_pairs"),
            "total_pairs": num(raw, "total_pairs"),
            "total_flips": num(raw, "total_flips"),
            "minimum_flips": num(raw, "minimum_flips"),
            "time_taken": num(raw, "time_taken"),
            "time_limit": num(raw, "time_limit", CARD_FLIP_TIME_LIMIT),
            "efficiency": 0.0,
        })
        if v["minimum_flips"] > 0 and v["total_flips"] > 0:
            v["efficiency"] = v["minimum_flips"] / v["total_flips"] * 100


__all__ = ["VariableExtractor", "num", "trials", "clamp"]
