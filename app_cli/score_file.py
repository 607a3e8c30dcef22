from __future__ import annotations
import argparse, json, logging, sys
from pathlib import Path
from scoring_core.ai_scoring import AIScoringAdapter
from scoring_core.config import load_config, make_rng
from scoring_core.engine import ScoringEngine
from scoring_core.errors import ScoringError
from scoring_core.types import AI_SCORABLE_GAMES, GameType

def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Score one game session stored as JSON.")
    ap.add_argument("path", help="JSON file with game_type, raw_data, config and optional ai_scores")
    ap.add_argument("--ai", action="store_true", help="run the AI evaluator first for AI-scored games")
    ap.add_argument("--verbose", "-v", action="store_true")
    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="[%(levelname)s] %(name)s: %(message)s")

    payload = json.loads(Path(args.path).read_text(encoding="utf-8"))
    game_type = payload.get("game_type", "")
    raw_data = payload.get("raw_data") or payload.get("response_data") or {}
    config = payload.get("config") or {}
    ai_scores = payload.get("ai_scores")

    try:
        if args.ai and ai_scores is None and GameType.parse(game_type) in AI_SCORABLE_GAMES:
            adapter = AIScoringAdapter(rng=make_rng(load_config()))
            ai_scores = adapter.score_response(game_type, raw_data, config)
            print(f"AI feedback: {ai_scores.get('feedback')}", file=sys.stderr)
        result = ScoringEngine().calculate_scores(game_type, raw_data, config, ai_scores)
    except ScoringError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    print(json.dumps(result.to_dict(), indent=2))
    return 0

if __name__ == "__main__": sys.exit(main())
