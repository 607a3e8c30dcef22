from __future__ import annotations
import argparse, json, sys
from pathlib import Path
from scoring_core.formula import FormulaEvaluator
from scoring_core.variables import VariableExtractor

def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Check a scoring config's formulas before activating it.")
    ap.add_argument("game_type")
    ap.add_argument("config", help="path to the scoring config JSON")
    args = ap.parse_args(argv)

    cfg = json.loads(Path(args.config).read_text(encoding="utf-8"))
    formulas = cfg.get("competency_formulas") or {}
    weights = cfg.get("final_weights") or {}
    ev, ex = FormulaEvaluator(), VariableExtractor()
    avail = ex.available_variables(args.game_type)
    known = set(avail["common"]) | set(avail["specific"])

    problems = 0
    for name, formula in formulas.items():
        check = ev.validate(formula)
        if not check["valid"]:
            print(f"  {name}: INVALID  {check['error']}"); problems += 1; continue
        unknown = sorted(ev.variables_of(formula) - known)
        note = f"  (not extracted for {args.game_type}: {', '.join(unknown)})" if unknown else ""
        print(f"  {name}: ok{note}")
    for name in weights:
        if name not in formulas:
            print(f"  {name}: weighted but has no formula (scores 0)"); problems += 1
    print(f"{len(formulas)} formulas, {problems} problem(s).")
    return 1 if problems else 0

if __name__ == "__main__": sys.exit(main())
