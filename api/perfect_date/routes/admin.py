import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError

from .. import repo
from ..auth.admin_deps import admin_actor, get_current_admin
from ..config import scoring_config
from ..database import SessionLocal
from ..errors import PerfectDateError, PersistenceError
from ..http_helpers import validate_match_id, validate_score_override, validate_visibility
from ..schemas import RunMatchingRequest, UpdateScoreRequest, VisibilityRequest
from ..services.calibration import compute_calibration_report
from ..services.events import list_admin_events

logger = logging.getLogger(__name__)

router = APIRouter()


def _json(data: Any) -> Any:
    return jsonable_encoder(data)


@router.get("/admin/participants")
def admin_participants_list(admin_user: dict[str, Any] = Depends(get_current_admin)) -> dict[str, Any]:
    _ = admin_user
    rows = repo.list_participants_admin()
    return _json({"participants": rows, "count": len(rows)})


@router.get("/admin/matches")
def admin_matches_list(admin_user: dict[str, Any] = Depends(get_current_admin)) -> dict[str, Any]:
    _ = admin_user
    rows = repo.list_matches_admin()
    return _json({"matches": rows, "count": len(rows)})


@router.get("/admin/settings")
def admin_settings_list(admin_user: dict[str, Any] = Depends(get_current_admin)) -> dict[str, Any]:
    _ = admin_user
    return _json({"settings": repo.list_settings(), "results_visible": repo.get_results_visible()})


@router.post("/admin/matches/run")
def admin_run_matching(
    payload: RunMatchingRequest | None = None,
    admin_user: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    from .. import main as m

    force = bool(payload.force) if payload else False
    try:
        out = m.repo_run_matching(force=force, actor=admin_actor(admin_user))
    except PerfectDateError as exc:
        logger.warning("[admin] matching run rejected reason=%s trace_id=%s", exc.reason, exc.trace_id)
        raise exc.to_http()
    return _json(out)


@router.post("/admin/matches/{match_id}/score")
def admin_update_match_score(
    match_id: str,
    payload: UpdateScoreRequest,
    admin_user: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    try:
        match_id = validate_match_id(match_id)
        field, value = validate_score_override(payload.field, payload.value)
        return _json(repo.update_match_score(match_id, field, value, actor=admin_actor(admin_user)))
    except PerfectDateError as exc:
        raise exc.to_http()


@router.post("/admin/settings/results-visible")
def admin_set_results_visible(
    payload: VisibilityRequest,
    admin_user: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    try:
        visible = validate_visibility(payload.visible)
        return _json(repo.set_results_visibility(visible, actor=admin_actor(admin_user)))
    except PerfectDateError as exc:
        raise exc.to_http()


@router.get("/admin/calibration")
def admin_calibration(admin_user: dict[str, Any] = Depends(get_current_admin)) -> dict[str, Any]:
    _ = admin_user
    try:
        with SessionLocal() as db:
            report = compute_calibration_report(db, cfg=scoring_config())
    except SQLAlchemyError as exc:
        logger.exception("[admin] calibration report failed")
        raise PersistenceError("Failed to build calibration report").to_http() from exc
    return _json(report)


@router.get("/admin/audit")
def admin_audit_events(
    action: str | None = None,
    limit: int = 50,
    admin_user: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    _ = admin_user
    try:
        with SessionLocal() as db:
            rows = list_admin_events(db, limit=limit)
    except SQLAlchemyError as exc:
        logger.exception("[admin] audit listing failed")
        raise PersistenceError("Failed to load audit events").to_http() from exc
    action_filter = str(action or "").strip().lower()
    if action_filter:
        rows = [r for r in rows if str(r.get("action") or "").lower() == action_filter]
    return _json({"events": rows, "count": len(rows)})
