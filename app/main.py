"""Command-line entrypoint: run the daily status summary batch once."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Ensure project root is importable when running `python app/main.py`
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SCRIPT_DIR = str(Path(__file__).resolve().parent)
project_root_str = str(PROJECT_ROOT)
if SCRIPT_DIR in sys.path:
    sys.path.remove(SCRIPT_DIR)
if project_root_str in sys.path:
    sys.path.remove(project_root_str)
sys.path.insert(0, project_root_str)

from app.core.startup import bootstrap
from app.tasks.summary_tasks import run_daily_status_summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Send the daily commitment status summary emails.")
    parser.add_argument(
        "--date",
        dest="as_of",
        default=None,
        help="Reporting day as YYYY-MM-DD in the reporting timezone (default: today).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    bootstrap()
    report = run_daily_status_summary(as_of=args.as_of)
    print(json.dumps(report, indent=2))
    return 1 if report["failures"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
