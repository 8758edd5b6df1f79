import logging
import uuid
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from perfect_date.config import ANSWER_FIELDS, RESULTS_VISIBLE_KEY
from perfect_date.database import SessionLocal
from perfect_date.errors import NotFoundError, PersistenceError
from perfect_date.services.events import log_admin_event
from perfect_date.services.settings import results_visible, set_results_visible

logger = logging.getLogger(__name__)

PARTICIPANT_COLUMNS = """
    id, user_id, name, email, age, gender, partner_preference,
    consent_given, registration_complete, questionnaire_complete, created_at, updated_at
"""


def _row(row) -> dict[str, Any] | None:
    if not row:
        return None
    out = dict(row)
    for key in ("id", "participant_id", "match_1_id", "match_2_id", "match_3_id"):
        if out.get(key) is not None:
            out[key] = str(out[key])
    if "partner_preference" in out:
        out["partner_preference"] = list(out.get("partner_preference") or [])
    return out


def get_participant_by_user_id(user_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text(f"SELECT {PARTICIPANT_COLUMNS} FROM participants WHERE user_id=:user_id"),
            {"user_id": user_id},
        ).mappings().first()
    return _row(row)


def create_participant(
    user_id: str,
    name: str,
    email: str,
    age: int,
    gender: str,
    partner_preference: list[str],
    consent_given: bool,
) -> dict[str, Any] | None:
    try:
        with SessionLocal() as db:
            db.execute(
                text(
                    """
                    INSERT INTO participants
                    (id, user_id, name, email, age, gender, partner_preference, consent_given, registration_complete)
                    VALUES (CAST(:id AS uuid), :user_id, :name, :email, :age, :gender, :partner_preference, :consent_given, TRUE)
                    """
                ),
                {
                    "id": str(uuid.uuid4()),
                    "user_id": user_id,
                    "name": name,
                    "email": email,
                    "age": age,
                    "gender": gender,
                    "partner_preference": partner_preference,
                    "consent_given": consent_given,
                },
            )
            db.commit()
    except IntegrityError:
        return None
    return get_participant_by_user_id(user_id)


def list_participants_admin() -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(f"SELECT {PARTICIPANT_COLUMNS} FROM participants ORDER BY created_at DESC")
        ).mappings().all()
    return [_row(r) for r in rows]


def get_participant_names(participant_ids: list[str]) -> dict[str, str]:
    ids = [pid for pid in participant_ids if pid]
    if not ids:
        return {}
    with SessionLocal() as db:
        rows = db.execute(
            text("SELECT id, name FROM participants WHERE CAST(id AS text) = ANY(:ids)"),
            {"ids": ids},
        ).mappings().all()
    return {str(r["id"]): str(r["name"]) for r in rows}


def get_questionnaire(user_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text(
                f"""
                SELECT user_id, {", ".join(ANSWER_FIELDS)}, current_step, updated_at
                FROM questionnaire_responses
                WHERE user_id=:user_id
                """
            ),
            {"user_id": user_id},
        ).mappings().first()
    return dict(row) if row else None


def upsert_questionnaire_answers(user_id: str, answers: dict[str, Any], current_step: int | None = None) -> dict[str, Any]:
    # Column names come from ANSWER_FIELDS only; callers sanitize keys first.
    cols = [k for k in ANSWER_FIELDS if k in answers]
    params: dict[str, Any] = {"user_id": user_id, "current_step": current_step}
    params.update({k: answers[k] for k in cols})

    insert_cols = ", ".join(["user_id", *cols, "current_step"])
    insert_vals = ", ".join([":user_id", *[f":{k}" for k in cols], "COALESCE(:current_step, 0)"])
    updates = [f"{k} = EXCLUDED.{k}" for k in cols]
    updates.append("current_step = COALESCE(:current_step, questionnaire_responses.current_step)")
    updates.append("updated_at = NOW()")

    with SessionLocal() as db:
        db.execute(
            text(
                f"""
                INSERT INTO questionnaire_responses ({insert_cols})
                VALUES ({insert_vals})
                ON CONFLICT (user_id)
                DO UPDATE SET {", ".join(updates)}
                """
            ),
            params,
        )
        db.commit()
    return get_questionnaire(user_id) or {}


def mark_questionnaire_complete(user_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        res = db.execute(
            text(
                """
                UPDATE participants
                SET questionnaire_complete = TRUE, updated_at = NOW()
                WHERE user_id=:user_id
                """
            ),
            {"user_id": user_id},
        )
        db.execute(
            text("UPDATE questionnaire_responses SET current_step = :step, updated_at = NOW() WHERE user_id=:user_id"),
            {"user_id": user_id, "step": len(ANSWER_FIELDS)},
        )
        db.commit()
    if not res.rowcount:
        return None
    return get_participant_by_user_id(user_id)


def get_match_for_participant(participant_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text("SELECT * FROM matches WHERE participant_id=CAST(:participant_id AS uuid)"),
            {"participant_id": participant_id},
        ).mappings().first()
    return _row(row)


def list_matches_admin() -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(text("SELECT * FROM matches ORDER BY created_at ASC")).mappings().all()
    return [_row(r) for r in rows]


def list_settings() -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(text("SELECT key, value, updated_at FROM app_settings ORDER BY key")).mappings().all()
    return [dict(r) for r in rows]


def get_results_visible() -> bool:
    with SessionLocal() as db:
        return results_visible(db)


def update_match_score(match_id: str, field: str, value: float, actor: str | None = None) -> dict[str, Any]:
    """Manual admin override of one slot score.

    ``field`` must already be validated against SCORE_FIELDS. The override is
    not reconciled with the scorer; a later forced run discards it.
    """
    try:
        with SessionLocal() as db:
            res = db.execute(
                text(f"UPDATE matches SET {field} = :value WHERE id = CAST(:id AS uuid)"),
                {"id": match_id, "value": value},
            )
            if not res.rowcount:
                raise NotFoundError("Match record not found")
            log_admin_event(db, action="score_override", actor=actor, payload={"match_id": match_id, "field": field, "value": value})
            db.commit()
    except SQLAlchemyError as exc:
        logger.exception("[admin] score override failed match_id=%s field=%s", match_id, field)
        raise PersistenceError("Failed to update score") from exc
    logger.info("[admin] score override match_id=%s field=%s value=%s actor=%s", match_id, field, value, actor)
    return {"success": True, "match_id": match_id, "field": field, "value": value}


def set_results_visibility(visible: bool, actor: str | None = None) -> dict[str, Any]:
    try:
        with SessionLocal() as db:
            set_results_visible(db, visible)
            log_admin_event(db, action="results_visibility", actor=actor, payload={"visible": visible})
            db.commit()
    except SQLAlchemyError as exc:
        logger.exception("[admin] visibility toggle failed")
        raise PersistenceError("Failed to update visibility") from exc
    logger.info("[admin] %s=%s actor=%s", RESULTS_VISIBLE_KEY, visible, actor)
    return {"success": True, "results_visible": visible}
