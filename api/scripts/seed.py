import argparse
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from perfect_date.database import SessionLocal
from perfect_date.services.seeding import seed_dummy_participants


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed dummy Perfect Date participants")
    parser.add_argument("--n-participants", type=int, default=40)
    parser.add_argument("--reset", action="store_true")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--completion-rate", type=float, default=0.9)
    parser.add_argument("--skip-rate", type=float, default=0.05)
    args = parser.parse_args()

    with SessionLocal() as db:
        summary = seed_dummy_participants(
            db=db,
            n_participants=args.n_participants,
            reset=args.reset,
            seed=args.seed,
            completion_rate=args.completion_rate,
            skip_rate=args.skip_rate,
        )

    print("Seed completed")
    for k, v in summary.items():
        print(f"- {k}: {v}")


if __name__ == "__main__":
    main()
