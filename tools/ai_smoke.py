# tools/ai_smoke.py
from __future__ import annotations
from scoring_core.ai_cfg import settings
from scoring_core.ai_scoring import AIScoringAdapter
from scoring_core.errors import AIScoringError

def main():
    s = settings()
    print("Base URL :", s.base_url)
    print("Models   :", ", ".join(s.models))
    print("Key set  :", s.configured)
    if not s.configured:
        print("No AI_API_KEY / GEMINI_API_KEY: the API will serve mock scores.")
        return
    try:
        reply = AIScoringAdapter(settings=s).complete("Say 'pong' only.", game_type="smoke")
        print("Reply    :", reply.strip())
    except AIScoringError as e:
        print("AI cascade failed:", e)
        print("→ Check the model names in AI_MODELS against the provider's model list.")
        raise

if __name__ == "__main__":
    main()
