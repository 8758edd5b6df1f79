from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import text

from ..config import (
    DISPLAY_MAX_SCORE,
    DISPLAY_PERCENT_CAP,
    MATCH_SLOTS,
    MATCHING_LOCK_ID,
    MCQ_FIELDS,
    RANKING_FIELDS,
    SLIDER_FIELDS,
    scoring_config,
)

logger = logging.getLogger(__name__)


@dataclass
class MatchScore:
    participant_id: str
    candidate_id: str
    score_total: float
    score_breakdown: dict[str, Any] = field(default_factory=dict)


@dataclass
class MatchSlate:
    participant_id: str
    slots: list[tuple[str, float]] = field(default_factory=list)

    def as_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"participant_id": self.participant_id}
        for idx in range(MATCH_SLOTS):
            slot = self.slots[idx] if idx < len(self.slots) else None
            record[f"match_{idx + 1}_id"] = slot[0] if slot else None
            record[f"match_{idx + 1}_score"] = slot[1] if slot else None
        return record


def _normalize_gender(value: Any) -> str | None:
    if value is None:
        return None
    v = str(value).strip().lower()
    return v or None


def _parse_preferences(values: Any) -> set[str]:
    if not isinstance(values, (list, tuple, set)):
        return set()
    out: set[str] = set()
    for item in values:
        g = _normalize_gender(item)
        if g:
            out.add(g)
    return out


def _gender_preference_compatible(u: dict[str, Any], v: dict[str, Any]) -> bool:
    u_gender = _normalize_gender(u.get("gender"))
    v_gender = _normalize_gender(v.get("gender"))
    if not u_gender or not v_gender:
        return False
    return v_gender in _parse_preferences(u.get("partner_preference")) and u_gender in _parse_preferences(
        v.get("partner_preference")
    )


def enumerate_eligible_pairs(participants: list[dict[str, Any]]) -> list[tuple[dict[str, Any], dict[str, Any]]]:
    """Ordered (source, candidate) pairs with mutual gender interest.

    Participants that have not completed the questionnaire are dropped before
    pairing, so they are never a source nor a candidate.
    """
    completed = [p for p in participants if p.get("questionnaire_complete")]
    pairs: list[tuple[dict[str, Any], dict[str, Any]]] = []
    for u in completed:
        for v in completed:
            if str(u["id"]) == str(v["id"]):
                continue
            if not _gender_preference_compatible(u, v):
                continue
            pairs.append((u, v))
    return pairs


def _mcq_answered(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def mcq_score(a: Any, b: Any, cfg: dict[str, Any] | None = None) -> float:
    cfg = cfg or scoring_config()
    if _mcq_answered(a) and a == b:
        return cfg["MCQ_WEIGHT"]
    return 0


def ranking_displacement(ranking_a: list[str], ranking_b: list[str]) -> int:
    # Items absent from the other ranking add no displacement.
    positions_b = {item: idx for idx, item in enumerate(ranking_b)}
    total = 0
    for idx, item in enumerate(ranking_a):
        pos = positions_b.get(item)
        if pos is not None:
            total += abs(idx - pos)
    return total


def ranking_score(ranking_a: Any, ranking_b: Any, cfg: dict[str, Any] | None = None) -> float:
    # Two permutations of five items can be 12 apart; only the floor is clamped.
    cfg = cfg or scoring_config()
    if not isinstance(ranking_a, list) or not isinstance(ranking_b, list) or not ranking_a or not ranking_b:
        return 0
    return max(0, cfg["RANKING_MAX_POINTS"] - ranking_displacement(ranking_a, ranking_b))


def slider_score(a: Any, b: Any, cfg: dict[str, Any] | None = None) -> float:
    cfg = cfg or scoring_config()
    if a is None or b is None:
        return 0
    return max(0, cfg["SLIDER_MAX_POINTS"] - abs(a - b) * cfg["SLIDER_STEP_PENALTY"])


def compute_compatibility(
    r1: dict[str, Any] | None,
    r2: dict[str, Any] | None,
    cfg: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Additive score of two questionnaire responses.

    An unanswered question on either side contributes nothing; a missing
    response record behaves like one with every question unanswered.
    """
    cfg = {**scoring_config(), **(cfg or {})}
    r1 = r1 or {}
    r2 = r2 or {}

    components: dict[str, float] = {}
    for key in MCQ_FIELDS:
        components[key] = mcq_score(r1.get(key), r2.get(key), cfg)
    for key in RANKING_FIELDS:
        components[key] = ranking_score(r1.get(key), r2.get(key), cfg)
    for key in SLIDER_FIELDS:
        components[key] = slider_score(r1.get(key), r2.get(key), cfg)

    sections = {
        "mcq": sum(components[k] for k in MCQ_FIELDS),
        "ranking": sum(components[k] for k in RANKING_FIELDS),
        "slider": sum(components[k] for k in SLIDER_FIELDS),
    }
    return {
        "score_total": sections["mcq"] + sections["ranking"] + sections["slider"],
        "score_breakdown": {"sections": sections, "components": components},
    }


def build_match_scores(
    participants: list[dict[str, Any]],
    responses_by_user: dict[str, dict[str, Any]],
    cfg: dict[str, Any] | None = None,
) -> list[MatchScore]:
    scores: list[MatchScore] = []
    for u, v in enumerate_eligible_pairs(participants):
        comp = compute_compatibility(
            responses_by_user.get(str(u.get("user_id"))),
            responses_by_user.get(str(v.get("user_id"))),
            cfg=cfg,
        )
        scores.append(
            MatchScore(
                participant_id=str(u["id"]),
                candidate_id=str(v["id"]),
                score_total=comp["score_total"],
                score_breakdown=comp["score_breakdown"],
            )
        )
    logger.debug("[matching] scored %s eligible ordered pairs", len(scores))
    return scores


def select_top_matches(
    participants: list[dict[str, Any]],
    scores: list[MatchScore],
    k: int = MATCH_SLOTS,
) -> list[MatchSlate]:
    """One slate per completed participant, best ``k`` candidates first.

    Equal scores keep enumeration order (the sort is stable); there is no
    further tie-break.
    """
    by_participant: dict[str, list[MatchScore]] = {}
    for s in scores:
        by_participant.setdefault(s.participant_id, []).append(s)

    slates: list[MatchSlate] = []
    for p in participants:
        if not p.get("questionnaire_complete"):
            continue
        pid = str(p["id"])
        ranked = sorted(by_participant.get(pid, []), key=lambda s: -s.score_total)
        slates.append(MatchSlate(participant_id=pid, slots=[(s.candidate_id, s.score_total) for s in ranked[:k]]))
    return slates


def display_percent(score: float | None) -> int:
    if score is None:
        return 0
    pct = int(float(score) / DISPLAY_MAX_SCORE * 100 + 0.5)
    return min(pct, DISPLAY_PERCENT_CAP)


def acquire_matching_lock(db) -> None:
    db.execute(text("SELECT pg_advisory_xact_lock(:lock_id)"), {"lock_id": MATCHING_LOCK_ID})


def count_match_records(db) -> int:
    return int(db.execute(text("SELECT COUNT(1) FROM matches")).scalar() or 0)


def delete_match_records(db) -> int:
    res = db.execute(text("DELETE FROM matches"))
    return int(res.rowcount or 0)


def fetch_completed_participants(db) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            """
            SELECT id, user_id, gender, partner_preference, questionnaire_complete
            FROM participants
            WHERE questionnaire_complete = TRUE
            ORDER BY created_at ASC, id ASC
            """
        )
    ).mappings().all()

    out: list[dict[str, Any]] = []
    for row in rows:
        prefs = row.get("partner_preference")
        out.append(
            {
                "id": str(row["id"]),
                "user_id": str(row["user_id"]),
                "gender": row.get("gender"),
                "partner_preference": list(prefs) if isinstance(prefs, (list, tuple)) else [],
                "questionnaire_complete": True,
            }
        )
    return out


def fetch_questionnaire_responses(db) -> dict[str, dict[str, Any]]:
    rows = db.execute(
        text(
            """
            SELECT user_id,
                   q1_friday_night, q2_humour, q3_conflict_style,
                   q4_life_pillars, q5_love_languages,
                   q6_social_battery, q7_spontaneity, q8_ambition, q9_productivity, q10_date_preference
            FROM questionnaire_responses
            """
        )
    ).mappings().all()
    return {str(r["user_id"]): dict(r) for r in rows}


def insert_match_records(db, slates: list[MatchSlate]) -> int:
    if not slates:
        return 0
    params = []
    for slate in slates:
        record = slate.as_record()
        record["id"] = str(uuid.uuid4())
        params.append(record)
    db.execute(
        text(
            """
            INSERT INTO matches
            (id, participant_id, match_1_id, match_1_score, match_2_id, match_2_score, match_3_id, match_3_score)
            VALUES (
              CAST(:id AS uuid),
              CAST(:participant_id AS uuid),
              CAST(:match_1_id AS uuid), :match_1_score,
              CAST(:match_2_id AS uuid), :match_2_score,
              CAST(:match_3_id AS uuid), :match_3_score
            )
            """
        ),
        params,
    )
    return len(params)
