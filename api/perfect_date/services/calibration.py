from typing import Any

from sqlalchemy import text

from .matching import build_match_scores, fetch_completed_participants, fetch_questionnaire_responses


def _percentile(values: list[float], p: float) -> float | None:
    if not values:
        return None
    vals = sorted(values)
    if len(vals) == 1:
        return round(vals[0], 6)
    pos = (len(vals) - 1) * p
    lo = int(pos)
    hi = min(lo + 1, len(vals) - 1)
    frac = pos - lo
    v = vals[lo] * (1 - frac) + vals[hi] * frac
    return round(v, 6)


def percentile_summary(values: list[float]) -> dict[str, float | None]:
    return {
        "p10": _percentile(values, 0.10),
        "p25": _percentile(values, 0.25),
        "p50": _percentile(values, 0.50),
        "p75": _percentile(values, 0.75),
        "p90": _percentile(values, 0.90),
    }


def compute_calibration_report(db, cfg: dict[str, Any] | None = None) -> dict[str, Any]:
    participants = fetch_completed_participants(db)
    responses = fetch_questionnaire_responses(db)
    scores = build_match_scores(participants, responses, cfg=cfg)

    pair_scores = [float(s.score_total) for s in scores]
    best_by_participant: dict[str, float] = {}
    for s in scores:
        best_by_participant[s.participant_id] = max(best_by_participant.get(s.participant_id, 0.0), float(s.score_total))
    best_scores = list(best_by_participant.values())

    rows = db.execute(
        text("SELECT match_1_id, match_1_score FROM matches")
    ).mappings().all()
    top_scores = [float(r["match_1_score"]) for r in rows if r["match_1_score"] is not None]
    without_match = sum(1 for r in rows if r["match_1_id"] is None)

    return {
        "completed_participants": len(participants),
        "participants_without_candidates": len(participants) - len(best_by_participant),
        "candidate_pair_count": len(scores),
        "pair_score_distribution": {
            "count": len(pair_scores),
            "percentiles": percentile_summary(pair_scores),
        },
        "per_participant_best_distribution": {
            "count": len(best_scores),
            "percentiles": percentile_summary(best_scores),
        },
        "persisted_top_slot_distribution": {
            "count": len(top_scores),
            "percentiles": percentile_summary(top_scores),
        },
        "record_counts": {
            "total_records": len(rows),
            "records_without_match": without_match,
        },
    }
