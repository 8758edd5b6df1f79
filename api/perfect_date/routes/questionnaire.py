from typing import Any

from fastapi import APIRouter, Depends

from .. import repo
from ..auth.deps import require_participant
from ..config import ANSWER_FIELDS, QUESTIONNAIRE_STEPS
from ..errors import PerfectDateError
from ..http_helpers import sanitize_questionnaire_answers, validate_current_step
from ..schemas import SaveAnswersRequest

router = APIRouter()


def _empty_questionnaire(user_id: str) -> dict[str, Any]:
    out: dict[str, Any] = {"user_id": user_id, "current_step": 0}
    out.update({k: None for k in ANSWER_FIELDS})
    return out


@router.get("/questionnaire")
def get_questionnaire(participant: dict[str, Any] = Depends(require_participant)) -> dict[str, Any]:
    user_id = str(participant["user_id"])
    return {
        "questionnaire": repo.get_questionnaire(user_id) or _empty_questionnaire(user_id),
        "total_steps": QUESTIONNAIRE_STEPS,
        "questionnaire_complete": bool(participant.get("questionnaire_complete")),
    }


@router.put("/questionnaire")
def save_questionnaire(
    payload: SaveAnswersRequest,
    participant: dict[str, Any] = Depends(require_participant),
) -> dict[str, Any]:
    try:
        answers = sanitize_questionnaire_answers(payload.answers)
        step = validate_current_step(payload.current_step)
    except PerfectDateError as exc:
        raise exc.to_http()
    saved = repo.upsert_questionnaire_answers(str(participant["user_id"]), answers, current_step=step)
    return {"questionnaire": saved, "saved_fields": sorted(answers)}


@router.post("/questionnaire/complete")
def complete_questionnaire(participant: dict[str, Any] = Depends(require_participant)) -> dict[str, Any]:
    updated = repo.mark_questionnaire_complete(str(participant["user_id"]))
    return {"participant": updated or participant, "questionnaire_complete": True}
