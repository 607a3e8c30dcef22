"""Prompt assembly for AI-evaluated game responses."""
from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping

from .types import GameType

HEADER = (
    "You are an expert evaluator for cognitive assessments. "
    "Score the following response across multiple competencies.\n\n"
)


def _text(data: Mapping[str, Any], key: str) -> str:
    val = data.get(key)
    return "" if val is None else str(val)


def _lines(data: Mapping[str, Any], key: str) -> str:
    val = data.get(key)
    if isinstance(val, (list, tuple)):
        return "\n".join(str(v) for v in val)
    return "" if val is None else str(val)


def context_block(game_type: str, data: Mapping[str, Any]) -> str:
    gt = GameType.parse(game_type)
    if gt is GameType.SCENARIO_CHALLENGE:
        return (
            f"SCENARIO:\n{_text(data, 'scenario_text')}\n\n"
            f"QUESTION:\n{_text(data, 'question_text')}\n\n"
            f"USER'S RESPONSE:\n{_text(data, 'response_text')}\n\n"
        )
    if gt is GameType.AI_DEBATE:
        return (
            f"DEBATE TOPIC:\n{_text(data, 'debate_statement')}\n\n"
            f"PROS ARGUMENT:\n{_text(data, 'pros_text')}\n\n"
            f"CONS ARGUMENT:\n{_text(data, 'cons_text')}\n\n"
        )
    if gt is GameType.STATEMENT_REASONING:
        return (
            f"STATEMENTS:\n{_lines(data, 'statements')}\n\n"
            f"USER'S EXPLANATION:\n{_text(data, 'response_text')}\n\n"
        )
    if gt is GameType.CREATIVE_USES:
        return (
            f"OBJECT: {_text(data, 'object_name')}\n\n"
            f"USES PROVIDED:\n{_lines(data, 'uses')}\n\n"
        )
    if gt is GameType.LUCKY_FLIP:
        decisions = data.get("decisions")
        return (
            "RISK GAME SUMMARY:\n"
            f"{json.dumps({k: v for k, v in data.items() if k != 'decisions'}, indent=2, default=str)}\n\n"
            f"ROUND DECISIONS:\n{json.dumps(decisions or [], indent=2, default=str)}\n\n"
        )
    return f"RESPONSE DATA:\n{json.dumps(dict(data), indent=2, default=str)}\n\n"


def build_prompt(
    game_type: str,
    response_data: Mapping[str, Any],
    ai_prompts: Mapping[str, str],
    competencies: Iterable[str],
) -> str:
    comps: List[str] = list(competencies)
    parts = [HEADER, context_block(game_type, response_data or {})]
    parts.append("\nEVALUATE THE FOLLOWING COMPETENCIES (score each 0-100):\n\n")
    for name in comps:
        instruction = ai_prompts.get(name) or f"Evaluate {name}"
        parts.append(f"{name.upper()}:\n{instruction}\n\n")
    parts.append("\nRESPOND ONLY WITH A JSON OBJECT IN THIS EXACT FORMAT:\n{\n")
    for name in comps:
        parts.append(f'  "{name}": <score 0-100>,\n')
    parts.append('  "feedback": "<brief explanation of scores>"\n}\n')
    return "".join(parts)


__all__ = ["build_prompt", "context_block", "HEADER"]
