from __future__ import annotations

import pytest

from scoring_core.variables import VariableExtractor

from tests.conftest import build_config, build_trials


def test_array_variables_basic_stats():
    ex = VariableExtractor()
    data = build_trials([True, False, True, True], [2.0, 4.0, 2.0, 4.0])
    v = ex.extract("mental_math_sprint", data, build_config({"accuracy": 1}, settings={"time_limit": 6}))

    assert v["total"] == 4
    assert v["correct"] == 3
    assert v["incorrect"] == 1
    assert v["accuracy_percent"] == pytest.approx(75.0)
    assert v["total_time"] == pytest.approx(12.0)
    assert v["avg_time"] == pytest.approx(3.0)
    assert v["min_time"] == 2.0 and v["max_time"] == 4.0
    assert v["time_std_dev"] == pytest.approx(1.0)  # population std dev
    assert v["time_limit"] == 6.0
    assert v["time_left"] == pytest.approx(3.0)


def test_empty_array_defaults_to_zero_and_default_time_limit():
    v = VariableExtractor().extract("mental_math_sprint", [], build_config({"accuracy": 1}))
    assert v["total"] == 0
    assert v["accuracy_percent"] == 0
    assert v["time_std_dev"] == 0
    assert v["time_limit"] == 5.0
    assert v["time_left"] == 5.0


def test_malformed_records_are_skipped():
    data = [{"is_correct": True, "time_taken": "fast"}, "garbage", None, {"is_correct": False}]
    v = VariableExtractor().extract("mental_math_sprint", data, build_config({"accuracy": 1}))
    assert v["total"] == 2
    assert v["correct"] == 1
    assert v["total_time"] == 0


def test_stroop_interference_counts():
    data = build_trials(
        [True, False, False, True],
        [1, 1, 1, 1],
        is_interference=[True, True, False, False],
    )
    v = VariableExtractor().extract("stroop_test", data, build_config({"accuracy": 1}))
    assert v["interference_items"] == 2
    assert v["interference_correct"] == 1
    assert v["interference_errors"] == 1
    assert v["interference_accuracy"] == pytest.approx(50.0)


def test_face_name_phase_counts():
    data = build_trials(
        [True, False, True],
        [1, 1, 1],
        phase=["learning", "recall", "recall"],
        is_new_face=[True, False, False],
    )
    v = VariableExtractor().extract("face_name_match", data, build_config({"memory": 1}))
    assert v["learning_phase_items"] == 1
    assert v["recall_phase_items"] == 2
    assert v["new_face_items"] == 1 and v["new_face_correct"] == 1
    assert v["learned_face_items"] == 2 and v["learned_face_correct"] == 1


def test_sudoku_counters_clamped_and_attempts_inferred():
    raw = {"correct_entries": 8, "incorrect_entries": 2, "total_empty_cells": 16}
    v = VariableExtractor().extract("sign_sudoku", raw, build_config({"accuracy": 1}))
    assert v["completion_percent"] == pytest.approx(50.0)
    assert v["accuracy_percent"] == pytest.approx(37.5)
    assert v["total_attempts"] == 10
    assert v["total_time_allowed"] == 60
    assert v["difficulty_multiplier"] == 1.0

    over = VariableExtractor().extract(
        "sign_sudoku",
        {"correct_entries": 30, "incorrect_entries": 0, "total_empty_cells": 10},
        build_config({"accuracy": 1}),
    )
    assert over["completion_percent"] == 100.0

    negative = VariableExtractor().extract(
        "sign_sudoku",
        {"correct_entries": 1, "incorrect_entries": 9, "total_empty_cells": 10},
        build_config({"accuracy": 1}),
    )
    assert negative["accuracy_percent"] == 0.0


def test_sudoku_zero_cells_is_zero_not_nan():
    v = VariableExtractor().extract("sign_sudoku", {"correct_entries": 5}, build_config({"accuracy": 1}))
    assert v["completion_percent"] == 0.0
    assert v["accuracy_percent"] == 0.0


def test_card_flip_efficiency_and_passthrough():
    raw = {"correct_pairs": 8, "total_pairs": 10, "total_flips": 40, "minimum_flips": 20, "bonus_rounds": 2}
    v = VariableExtractor().extract("card_flip_challenge", raw, build_config({"reasoning": 1}))
    assert v["efficiency"] == pytest.approx(50.0)
    assert v["time_limit"] == 60
    assert v["bonus_rounds"] == 2


def test_unknown_game_dict_passes_numeric_fields_through():
    raw = {"words": 12, "bonus": True, "label": "x", "bad": float("nan")}
    v = VariableExtractor().extract("brand_new_game", raw, build_config({"a": 1}))
    assert v == {"words": 12.0, "bonus": 1.0}


def test_non_collection_raw_data_never_raises():
    assert VariableExtractor().extract("mental_math_sprint", None, build_config({"a": 1})) == {}
    assert VariableExtractor().extract("sign_sudoku", 42, build_config({"a": 1}))["completion_percent"] == 0.0


def test_available_variables():
    ex = VariableExtractor()
    out = ex.available_variables("stroop_test")
    assert "accuracy_percent" in out["common"]
    assert "interference_accuracy" in out["specific"]
    assert ex.available_variables("no_such_game")["specific"] == {}


def test_huge_integers_fall_back_instead_of_raising():
    ex = VariableExtractor()
    cfg = build_config({"a": 1})
    sudoku = ex.extract("sign_sudoku", {"correct_entries": 10**400, "incorrect_entries": 2}, cfg)
    assert sudoku["correct_entries"] == 0
    assert sudoku["total_attempts"] == 2

    passthrough = ex.extract("new_game", {"moves": 10**400, "level": 3}, cfg)
    assert passthrough == {"level": 3.0}
