import argparse
import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from perfect_date.config import scoring_config
from perfect_date.database import SessionLocal
from perfect_date.services.calibration import compute_calibration_report


def main() -> None:
    parser = argparse.ArgumentParser(description="Score distribution report for the current participant pool")
    parser.add_argument("--indent", type=int, default=2)
    args = parser.parse_args()

    with SessionLocal() as db:
        report = compute_calibration_report(db, cfg=scoring_config())

    print(json.dumps(report, indent=args.indent))


if __name__ == "__main__":
    main()
