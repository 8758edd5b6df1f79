import re
import uuid
from typing import Any

from .config import (
    ANSWER_FIELDS,
    GENDERS,
    MCQ_OPTIONS,
    QUESTIONNAIRE_STEPS,
    RANKING_ITEMS,
    SCORE_FIELDS,
    SCORE_OVERRIDE_MAX,
    SCORE_OVERRIDE_MIN,
    SLIDER_FIELDS,
    SLIDER_MAX,
    SLIDER_MIN,
)
from .errors import InvalidInputError

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_gender(value: Any) -> str | None:
    if value is None:
        return None
    g = str(value).strip().lower()
    return g or None


def sanitize_registration_payload(payload: dict[str, Any]) -> dict[str, Any]:
    name = str(payload.get("name") or "").strip()
    if not name:
        raise InvalidInputError("name is required")
    if len(name) > 80:
        raise InvalidInputError("name must be 80 characters or fewer")

    email = normalize_email(str(payload.get("email") or ""))
    if len(email) > 254 or not EMAIL_RE.match(email):
        raise InvalidInputError("Invalid email format")

    age = payload.get("age")
    if isinstance(age, bool) or not isinstance(age, int) or not 18 <= age <= 99:
        raise InvalidInputError("age must be an integer between 18 and 99")

    gender = normalize_gender(payload.get("gender"))
    if gender not in GENDERS:
        raise InvalidInputError(f"gender must be one of: {', '.join(GENDERS)}")

    raw_pref = payload.get("partner_preference") or []
    if not isinstance(raw_pref, list):
        raise InvalidInputError("partner_preference must be an array")
    partner_preference: list[str] = []
    for value in raw_pref:
        g = normalize_gender(value)
        if g not in GENDERS:
            raise InvalidInputError(f"partner_preference may only include: {', '.join(GENDERS)}")
        if g not in partner_preference:
            partner_preference.append(g)
    if not partner_preference:
        raise InvalidInputError("partner_preference is required")

    if payload.get("consent_given") is not True:
        raise InvalidInputError("consent is required to take part")

    return {
        "name": name,
        "email": email,
        "age": age,
        "gender": gender,
        "partner_preference": partner_preference,
        "consent_given": True,
    }


def sanitize_questionnaire_answers(answers: dict[str, Any]) -> dict[str, Any]:
    clean: dict[str, Any] = {}
    for key, value in answers.items():
        if key not in ANSWER_FIELDS:
            raise InvalidInputError(f"Unknown question: {key}")
        if value is None:
            clean[key] = None
            continue
        if key in MCQ_OPTIONS:
            if value not in MCQ_OPTIONS[key]:
                raise InvalidInputError(f"{key} must be one of: {', '.join(MCQ_OPTIONS[key])}")
            clean[key] = value
        elif key in RANKING_ITEMS:
            if not isinstance(value, list) or sorted(value) != sorted(RANKING_ITEMS[key]):
                raise InvalidInputError(f"{key} must rank each of: {', '.join(RANKING_ITEMS[key])}")
            clean[key] = list(value)
        elif key in SLIDER_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int) or not SLIDER_MIN <= value <= SLIDER_MAX:
                raise InvalidInputError(f"{key} must be an integer between {SLIDER_MIN} and {SLIDER_MAX}")
            clean[key] = value
    return clean


def validate_current_step(step: Any) -> int | None:
    if step is None:
        return None
    if isinstance(step, bool) or not isinstance(step, int) or not 0 <= step <= QUESTIONNAIRE_STEPS:
        raise InvalidInputError(f"current_step must be between 0 and {QUESTIONNAIRE_STEPS}")
    return step


def validate_score_override(field: Any, value: Any) -> tuple[str, float]:
    if field not in SCORE_FIELDS:
        raise InvalidInputError("Invalid field", reason="invalid_field")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError("Invalid score value", reason="invalid_score")
    if not SCORE_OVERRIDE_MIN <= value <= SCORE_OVERRIDE_MAX:
        raise InvalidInputError("Invalid score value", reason="invalid_score")
    return str(field), float(value)


def validate_visibility(value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidInputError("Invalid visibility value")
    return value


def validate_match_id(match_id: Any) -> str:
    try:
        return str(uuid.UUID(str(match_id)))
    except ValueError:
        raise InvalidInputError("Invalid match id", reason="invalid_match_id")
