import json
import os
from typing import Any

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+psycopg2://postgres:postgres@db:5432/perfect_date")
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")
JWT_SECRET = os.getenv("JWT_SECRET", "")
ACCESS_TOKEN_TTL_MINUTES = int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", "60"))
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

MATCH_SLOTS = int(os.getenv("MATCH_SLOTS", "3"))
MIN_PARTICIPANTS = int(os.getenv("MIN_PARTICIPANTS", "2"))
MATCHING_LOCK_ID = int(os.getenv("MATCHING_LOCK_ID", "727001"))
RESULTS_VISIBLE_KEY = "results_visible"

DISPLAY_MAX_SCORE = float(os.getenv("DISPLAY_MAX_SCORE", "100"))
DISPLAY_PERCENT_CAP = int(os.getenv("DISPLAY_PERCENT_CAP", "99"))
SCORE_OVERRIDE_MIN = float(os.getenv("SCORE_OVERRIDE_MIN", "0"))
SCORE_OVERRIDE_MAX = float(os.getenv("SCORE_OVERRIDE_MAX", "100"))

DEFAULT_SCORING_CONFIG: dict[str, Any] = {
    "MCQ_WEIGHT": int(os.getenv("MCQ_WEIGHT", "15")),
    "RANKING_MAX_POINTS": int(os.getenv("RANKING_MAX_POINTS", "10")),
    "SLIDER_MAX_POINTS": int(os.getenv("SLIDER_MAX_POINTS", "10")),
    "SLIDER_STEP_PENALTY": int(os.getenv("SLIDER_STEP_PENALTY", "2")),
}

if os.getenv("SCORING_CONFIG_JSON"):
    try:
        DEFAULT_SCORING_CONFIG.update(json.loads(os.getenv("SCORING_CONFIG_JSON", "{}")))
    except json.JSONDecodeError:
        pass

GENDERS = ("male", "female", "non_binary")

MCQ_OPTIONS: dict[str, tuple[str, ...]] = {
    "q1_friday_night": ("library", "bistro", "party", "netflix"),
    "q2_humour": ("sarcasm", "wholesome", "intellectual", "goofy"),
    "q3_conflict_style": ("mediator", "driver", "avoider", "analyzer"),
}
RANKING_ITEMS: dict[str, tuple[str, ...]] = {
    "q4_life_pillars": ("career", "growth", "friendships", "family", "adventure"),
    "q5_love_languages": ("words", "acts", "time", "gifts", "touch"),
}
SLIDER_FIELDS: tuple[str, ...] = (
    "q6_social_battery",
    "q7_spontaneity",
    "q8_ambition",
    "q9_productivity",
    "q10_date_preference",
)
SLIDER_MIN = 1
SLIDER_MAX = 5

MCQ_FIELDS: tuple[str, ...] = tuple(MCQ_OPTIONS)
RANKING_FIELDS: tuple[str, ...] = tuple(RANKING_ITEMS)
ANSWER_FIELDS: tuple[str, ...] = MCQ_FIELDS + RANKING_FIELDS + SLIDER_FIELDS
QUESTIONNAIRE_STEPS = len(ANSWER_FIELDS)

SCORE_FIELDS: tuple[str, ...] = ("match_1_score", "match_2_score", "match_3_score")


def scoring_config() -> dict[str, Any]:
    return dict(DEFAULT_SCORING_CONFIG)
