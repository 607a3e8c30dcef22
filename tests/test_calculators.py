from __future__ import annotations

import math

import pytest

from scoring_core.calculators import (
    CALCULATORS,
    ai_game,
    card_flip_challenge,
    face_name_match,
    lucky_flip,
    mental_math_sprint,
    sign_sudoku,
    stroop_test,
    vocab_challenge,
)
from scoring_core.types import FIXED_FORMULA_GAMES

from tests.conftest import build_config, build_trials


def raws(result):
    return {k: v.raw for k, v in result.competencies.items()}


def test_every_built_in_game_has_a_calculator():
    assert set(CALCULATORS) == FIXED_FORMULA_GAMES


def test_mental_math_binary(math_config):
    res = mental_math_sprint(build_trials([True, False], [2, 4]), math_config)
    r = raws(res)
    assert r["accuracy"] == 50
    assert r["speed"] == 40
    assert r["quantitative_aptitude"] == pytest.approx(47)
    # stddev 1 -> 90, plus half of speed; left unclamped
    assert r["mental_stamina"] == pytest.approx(110)
    assert res.final_score == pytest.approx(59.1)
    assert res.raw_stats["total_questions"] == 2
    assert res.raw_stats["avg_time_per_question"] == 3


def test_mental_math_graded():
    cfg = build_config({"accuracy": 1}, settings={"accuracy_mode": "graded"})
    data = build_trials(
        [False, True],
        [1, 1],
        user_answer=[9, 0],
        correct_answer=[10, 0],
    )
    assert raws(mental_math_sprint(data, cfg))["accuracy"] == pytest.approx(95)


def test_mental_math_graded_wrong_answer_to_zero_question():
    cfg = build_config({"accuracy": 1}, settings={"accuracy_mode": "graded"})
    data = build_trials([False], [1], user_answer=[3], correct_answer=[0])
    assert raws(mental_math_sprint(data, cfg))["accuracy"] == 0


def test_stroop():
    cfg = build_config({"cognitive_flexibility": 0.5, "cognitive_agility": 0.5, "accuracy": 0, "speed": 0})
    data = build_trials(
        [True, False, False, True],
        [1, 1, 1, 1],
        is_interference=[True, True, False, False],
    )
    r = raws(stroop_test(data, cfg))
    assert r["accuracy"] == 50
    assert r["speed"] == pytest.approx(92)
    assert r["cognitive_flexibility"] == 95
    assert r["cognitive_agility"] == pytest.approx(66.8)


def test_face_name():
    cfg = build_config({"memory": 0.5, "accuracy": 0.25, "speed": 0.25})
    r = raws(face_name_match(build_trials([True, False], [2, 4]), cfg))
    assert r["speed"] == pytest.approx(70)
    assert r["memory"] == pytest.approx(56)


def test_sudoku_completion_and_penalised_accuracy(sudoku_config):
    raw = {"correct_entries": 8, "incorrect_entries": 2, "total_empty_cells": 16}
    res = sign_sudoku(raw, sudoku_config)
    r = raws(res)
    assert r["math"] == 50
    assert r["accuracy"] == 44
    assert r["reasoning"] == 80
    assert r["attention_to_detail"] == pytest.approx(26.4)
    assert r["speed"] == 40
    assert res.raw_stats["completion_percent"] == 50
    assert res.final_score == pytest.approx(47.98)


def test_sudoku_penalty_key_fallbacks():
    raw = {"correct_entries": 8, "incorrect_entries": 2, "total_empty_cells": 16}
    legacy = build_config({"accuracy": 1}, penalties={"incorrect_penalty": 10})
    default = build_config({"accuracy": 1})
    assert raws(sign_sudoku(raw, legacy))["accuracy"] == 30
    assert raws(sign_sudoku(raw, default))["accuracy"] == 44


def test_sudoku_clamps_and_grid_size_fallback():
    cfg = build_config({"accuracy": 0.5, "math": 0.5})
    bad = sign_sudoku({"correct_entries": 1, "incorrect_entries": 20, "grid_size": 4}, cfg)
    assert raws(bad)["accuracy"] == 0
    assert raws(bad)["math"] == pytest.approx(6.25)

    over = sign_sudoku({"correct_entries": 40, "total_empty_cells": 16}, cfg)
    assert raws(over)["math"] == 100
    assert raws(over)["accuracy"] == 100


def test_card_flip():
    cfg = build_config({"pattern_recognition": 0.25, "reasoning": 0.25, "strategy": 0.25, "speed": 0.25})
    raw = {
        "correct_pairs": 8,
        "total_pairs": 10,
        "total_flips": 40,
        "minimum_flips": 20,
        "time_taken": 30,
        "pattern_discovered": True,
    }
    r = raws(card_flip_challenge(raw, cfg))
    assert r == {"pattern_recognition": 80, "reasoning": 65, "strategy": 100, "speed": 50}


def test_card_flip_defaults():
    cfg = build_config({"pattern_recognition": 0.5, "strategy": 0.5})
    r = raws(card_flip_challenge({}, cfg))
    assert r["pattern_recognition"] == 0
    assert r["strategy"] == 50


def test_lucky_flip_placeholders_require_ai():
    cfg = build_config({"drive": 0.4, "risk_appetite": 0.3, "reasoning": 0.3})
    raw = {"rounds_completed": 8, "times_went_bust": 1, "voluntary_stops_at_optimal_points": 2, "final_credits": 130}
    res = lucky_flip(raw, cfg)
    assert res.competencies["drive"].raw == 80
    assert res.competencies["risk_appetite"].raw == 50
    assert res.competencies["risk_appetite"].requires_ai is True
    assert res.competencies["drive"].requires_ai is None
    assert res.raw_stats["profit_loss"] == 30


def test_lucky_flip_uses_supplied_ai_scores():
    cfg = build_config({"drive": 0.4, "risk_appetite": 0.3, "reasoning": 0.3})
    raw = {"rounds_completed": 8, "times_went_bust": 1, "voluntary_stops_at_optimal_points": 2}
    res = lucky_flip(raw, cfg, {"risk_appetite": 120})
    assert res.competencies["risk_appetite"].raw == 100
    assert res.competencies["risk_appetite"].scored_by_ai is True
    assert res.competencies["reasoning"].requires_ai is True
    assert res.final_score == pytest.approx(77)


def test_lucky_flip_config_penalty_and_bonus():
    cfg = build_config({"drive": 1}, penalties={"bust_penalty": 20}, bonuses={"optimal_stop_bonus": 1})
    raw = {"rounds_completed": 5, "times_went_bust": 3, "voluntary_stops_at_optimal_points": 2}
    assert raws(lucky_flip(raw, cfg))["drive"] == 0


def test_vocab():
    cfg = build_config({"vocabulary": 0.5, "speed": 0.5})
    r = raws(vocab_challenge({"unique_valid_words": 15, "total_words_entered": 20}, cfg))
    assert r == {"vocabulary": 75, "speed": 25}


@pytest.mark.parametrize("game", sorted(FIXED_FORMULA_GAMES, key=lambda g: g.value))
@pytest.mark.parametrize("raw", [[], {}, None])
def test_empty_inputs_never_divide_by_zero(game, raw):
    cfg = build_config({"accuracy": 0.5, "speed": 0.5})
    res = CALCULATORS[game](raw, cfg)
    assert res.competencies["accuracy"].raw == 0
    assert set(res.competencies) == {"accuracy", "speed"}


@pytest.mark.parametrize("game", sorted(FIXED_FORMULA_GAMES, key=lambda g: g.value))
def test_huge_counters_never_overflow(game):
    cfg = build_config({"accuracy": 0.5, "speed": 0.3, "math": 0.2})
    raw = {
        "correct_entries": 10**400,
        "total_empty_cells": 16,
        "completion_percent": 10**400,
        "correct_pairs": 1e308,
        "total_pairs": 1e-308,
        "rounds_completed": 10**400,
        "unique_valid_words": 1e308,
    }
    res = CALCULATORS[game](raw, cfg)
    assert math.isfinite(res.final_score)
    assert all(math.isfinite(c.raw) and math.isfinite(c.weighted) for c in res.competencies.values())


def test_sudoku_huge_grid_size_falls_back_to_zero_cells():
    cfg = build_config({"accuracy": 0.5, "math": 0.5})
    r = raws(sign_sudoku({"correct_entries": 5, "grid_size": 1e200}, cfg))
    assert r == {"accuracy": 0, "math": 0}


def test_calculators_are_idempotent(math_config):
    data = build_trials([True, True, False], [1.5, 2.5, 3.0])
    first = mental_math_sprint(data, math_config).to_dict()
    second = mental_math_sprint(data, math_config).to_dict()
    assert first == second


def test_ai_game_weights_and_clamps():
    cfg = build_config({"clarity": 0.5, "depth": 0.5})
    res = ai_game({"response_text": "hello"}, cfg, {"clarity": 140, "depth": 60, "feedback": "ok"})
    assert res.competencies["clarity"].raw == 100
    assert res.competencies["depth"].scored_by_ai is True
    assert res.final_score == 80
    assert res.raw_stats == {"response_length": 5, "ai_evaluated": True}
