import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from perfect_date.errors import PerfectDateError
from perfect_date.main import repo_run_matching


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the one-shot Perfect Date matching batch")
    parser.add_argument("--force", action="store_true", help="discard existing match records and re-run")
    parser.add_argument("--actor", type=str, default="cli")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    try:
        out = repo_run_matching(force=args.force, actor=args.actor)
    except PerfectDateError as exc:
        print(json.dumps(exc.to_detail(), indent=2))
        sys.exit(1)
    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    main()
