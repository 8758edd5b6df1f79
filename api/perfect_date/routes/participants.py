import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from .. import repo
from ..auth.deps import get_current_user, require_participant
from ..errors import PerfectDateError
from ..http_helpers import sanitize_registration_payload
from ..schemas import RegisterParticipantRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/participants", status_code=201)
def register_participant(
    payload: RegisterParticipantRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        clean = sanitize_registration_payload(payload.model_dump())
    except PerfectDateError as exc:
        raise exc.to_http()

    user_id = str(current_user["id"])
    if repo.get_participant_by_user_id(user_id):
        raise HTTPException(status_code=409, detail="Participant already registered")

    participant = repo.create_participant(user_id=user_id, **clean)
    if not participant:
        raise HTTPException(status_code=409, detail="Participant already registered")
    logger.info("[participants] registered participant_id=%s", participant.get("id"))
    return {"participant": participant}


@router.get("/participants/me")
def get_my_participant(participant: dict[str, Any] = Depends(require_participant)) -> dict[str, Any]:
    return {"participant": participant}
