#!/usr/bin/env python
import os, argparse, json
from dotenv import load_dotenv
from interview_scoring.config import get_settings
from interview_scoring.logging_utils import setup_logging
from interview_scoring.runner import run_full_pass

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("input", help="Path to an interview export with a top-level 'interviews' list")
    ap.add_argument("--out", help="Output path (defaults to <input>_scored.json)")
    ap.add_argument("--mock", action="store_true", help="Enable MOCK_MODE=1 (no API calls)")
    args = ap.parse_args()

    load_dotenv()
    if args.mock:
        os.environ["MOCK_MODE"] = "1"
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)

    out = args.out or (os.path.splitext(args.input)[0] + "_scored.json")
    result = run_full_pass(args.input, out, settings=settings)
    print(json.dumps({"saved": out, "scored": result["meta"]["scored_submissions"],
                      "stats": result["stats"]}, indent=2))

if __name__ == "__main__":
    main()
