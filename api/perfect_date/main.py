import logging
import os
import time
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from .config import ADMIN_TOKEN, MATCH_SLOTS, MIN_PARTICIPANTS, scoring_config
from .database import SessionLocal
from .errors import InsufficientParticipantsError, MatchingAlreadyRunError, PersistenceError
from .routes import include_modular_routers
from .services.events import log_admin_event
from .services.matching import (
    acquire_matching_lock,
    build_match_scores,
    count_match_records,
    delete_match_records,
    fetch_completed_participants,
    fetch_questionnaire_responses,
    insert_match_records,
    select_top_matches,
)
from .services.settings import set_results_visible

logger = logging.getLogger(__name__)

app = FastAPI(title="Perfect Date API")
include_modular_routers(app)

ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def run_migrations() -> None:
    env_dir = os.getenv("MIGRATIONS_DIR", "").strip()
    local_dir = Path(__file__).resolve().parents[1] / "migrations"
    migrations_dir = Path(env_dir) if env_dir else local_dir

    if not migrations_dir.exists() or not migrations_dir.is_dir():
        raise FileNotFoundError(
            "Migrations directory not found. Checked: "
            f"MIGRATIONS_DIR={env_dir or '<unset>'}, {local_dir}"
        )

    files = sorted([f.name for f in migrations_dir.iterdir() if f.is_file() and f.suffix == ".sql"])
    with SessionLocal() as db:
        for fname in files:
            sql = (migrations_dir / fname).read_text(encoding="utf-8")
            db.execute(text(sql))
        db.commit()
    logger.info("Applied %s migration file(s) from %s", len(files), migrations_dir)


def wait_for_db(max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


@app.on_event("startup")
def on_startup() -> None:
    wait_for_db()
    run_migrations()
    if not ADMIN_TOKEN:
        logger.warning("ADMIN_TOKEN is not set; admin routes accept bearer admin tokens only")


def repo_run_matching(force: bool = False, actor: str | None = None) -> dict[str, Any]:
    """One batch matching run, all-or-nothing.

    Holds a transaction-scoped advisory lock for the whole check/delete/insert
    sequence so concurrent runs serialize. Every mutation happens in one
    transaction; an error before commit leaves the previous state intact.
    """
    logger.info("[matching] run requested force=%s actor=%s", force, actor)
    try:
        with SessionLocal() as db:
            acquire_matching_lock(db)

            existing = count_match_records(db)
            if existing and not force:
                logger.info("[matching] %s records already exist; refusing non-forced run", existing)
                raise MatchingAlreadyRunError("Matching has already been run. Use force option to re-run.")

            participants = fetch_completed_participants(db)
            if len(participants) < MIN_PARTICIPANTS:
                logger.warning("[matching] only %s completed participant(s); aborting", len(participants))
                raise InsufficientParticipantsError("Not enough participants to run matching")
            responses = fetch_questionnaire_responses(db)
            logger.info("[matching] %s completed participants, %s responses", len(participants), len(responses))

            deleted = 0
            if existing:
                deleted = delete_match_records(db)
                logger.info("[matching] force mode: cleared %s existing records", deleted)

            scores = build_match_scores(participants, responses, cfg=scoring_config())
            slates = select_top_matches(participants, scores, k=MATCH_SLOTS)
            created = insert_match_records(db, slates)
            set_results_visible(db, False)

            if existing:
                log_admin_event(
                    db,
                    action="force_rerun_matching",
                    actor=actor,
                    payload={"deleted_records": deleted, "created_records": created},
                )
            db.commit()
    except SQLAlchemyError as exc:
        logger.exception("[matching] persistence failure; run rolled back")
        raise PersistenceError("Matching run failed while reading or writing the store") from exc

    logger.info("[matching] created %s match records from %s eligible pairs", created, len(scores))
    return {
        "success": True,
        "matches_created": created,
        "participants": len(participants),
        "eligible_pairs": len(scores),
        "deleted_records": deleted,
        "forced": bool(force),
        "message": "Matching complete! Results are hidden by default.",
    }


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
