from typing import Any

from fastapi import APIRouter, Depends

from .. import repo
from ..auth.deps import require_participant
from ..config import MATCH_SLOTS
from ..services.matching import display_percent

router = APIRouter()


def _slots(record: dict[str, Any]) -> list[tuple[str, Any]]:
    out: list[tuple[str, Any]] = []
    for idx in range(1, MATCH_SLOTS + 1):
        candidate_id = record.get(f"match_{idx}_id")
        if candidate_id:
            out.append((str(candidate_id), record.get(f"match_{idx}_score")))
    return out


@router.get("/matches/me")
def get_my_matches(participant: dict[str, Any] = Depends(require_participant)) -> dict[str, Any]:
    visible = repo.get_results_visible()
    if not visible or not participant.get("questionnaire_complete"):
        return {"results_visible": visible, "matches": []}

    record = repo.get_match_for_participant(str(participant["id"]))
    if not record:
        return {"results_visible": visible, "matches": []}

    slots = _slots(record)
    names = repo.get_participant_names([cid for cid, _ in slots])
    matches = []
    for rank, (candidate_id, score) in enumerate(slots, start=1):
        if candidate_id not in names:
            continue
        matches.append(
            {
                "rank": rank,
                "participant_id": candidate_id,
                "name": names[candidate_id],
                "score": score or 0,
                "compatibility_pct": display_percent(score),
            }
        )
    return {"results_visible": visible, "matches": matches}
