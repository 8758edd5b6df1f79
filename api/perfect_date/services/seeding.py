import random
import uuid
from typing import Any

from sqlalchemy import text

from ..config import GENDERS, MCQ_OPTIONS, QUESTIONNAIRE_STEPS, RANKING_ITEMS, SLIDER_FIELDS, SLIDER_MAX, SLIDER_MIN

SEED_EMAIL_DOMAIN = "seed.perfectdate.local"

PREFERENCE_PROFILES: dict[str, list[list[str]]] = {
    "male": [["female"], ["female"], ["female"], ["male"], ["female", "male"]],
    "female": [["male"], ["male"], ["male"], ["female"], ["male", "female"]],
    "non_binary": [["non_binary"], ["male", "female", "non_binary"], ["female", "non_binary"]],
}
FIRST_NAMES = ["Aarav", "Diya", "Kabir", "Meera", "Rohan", "Isha", "Vihaan", "Anaya", "Arjun", "Sara", "Dev", "Tara"]


def _generate_gender_preferences(rng: random.Random) -> tuple[str, list[str]]:
    gender = rng.choices(list(GENDERS), weights=[0.46, 0.46, 0.08], k=1)[0]
    return gender, rng.choice(PREFERENCE_PROFILES[gender])


def _maybe(rng: random.Random, value: Any, skip_rate: float) -> Any:
    return None if rng.random() < skip_rate else value


def _generate_answers(rng: random.Random, skip_rate: float) -> dict[str, Any]:
    answers: dict[str, Any] = {}
    for key, options in MCQ_OPTIONS.items():
        answers[key] = _maybe(rng, rng.choice(options), skip_rate)
    for key, items in RANKING_ITEMS.items():
        order = list(items)
        rng.shuffle(order)
        answers[key] = _maybe(rng, order, skip_rate)
    for key in SLIDER_FIELDS:
        answers[key] = _maybe(rng, rng.randint(SLIDER_MIN, SLIDER_MAX), skip_rate)
    return answers


def reset_seeded_participants(db) -> int:
    db.execute(text("DELETE FROM matches"))
    db.execute(
        text(
            """
            DELETE FROM questionnaire_responses
            WHERE user_id IN (SELECT user_id FROM participants WHERE email LIKE :pattern)
            """
        ),
        {"pattern": f"%@{SEED_EMAIL_DOMAIN}"},
    )
    res = db.execute(text("DELETE FROM participants WHERE email LIKE :pattern"), {"pattern": f"%@{SEED_EMAIL_DOMAIN}"})
    return int(res.rowcount or 0)


def seed_dummy_participants(
    db,
    n_participants: int = 40,
    reset: bool = False,
    seed: int = 42,
    completion_rate: float = 0.9,
    skip_rate: float = 0.05,
) -> dict[str, Any]:
    rng = random.Random(seed)
    deleted = reset_seeded_participants(db) if reset else 0

    genders: dict[str, int] = {g: 0 for g in GENDERS}
    completed = 0
    for idx in range(n_participants):
        user_id = str(uuid.UUID(int=rng.getrandbits(128)))
        gender, preference = _generate_gender_preferences(rng)
        is_complete = rng.random() < completion_rate
        name = f"{rng.choice(FIRST_NAMES)} {idx + 1}"
        db.execute(
            text(
                """
                INSERT INTO participants
                (user_id, name, email, age, gender, partner_preference, consent_given, registration_complete, questionnaire_complete)
                VALUES (:user_id, :name, :email, :age, :gender, :partner_preference, TRUE, TRUE, :questionnaire_complete)
                ON CONFLICT (user_id) DO NOTHING
                """
            ),
            {
                "user_id": user_id,
                "name": name,
                "email": f"participant{idx + 1}@{SEED_EMAIL_DOMAIN}",
                "age": rng.randint(18, 30),
                "gender": gender,
                "partner_preference": preference,
                "questionnaire_complete": is_complete,
            },
        )
        answers = _generate_answers(rng, skip_rate if is_complete else 0.6)
        db.execute(
            text(
                """
                INSERT INTO questionnaire_responses
                (user_id, q1_friday_night, q2_humour, q3_conflict_style, q4_life_pillars, q5_love_languages,
                 q6_social_battery, q7_spontaneity, q8_ambition, q9_productivity, q10_date_preference, current_step)
                VALUES (:user_id, :q1_friday_night, :q2_humour, :q3_conflict_style, :q4_life_pillars, :q5_love_languages,
                 :q6_social_battery, :q7_spontaneity, :q8_ambition, :q9_productivity, :q10_date_preference, :current_step)
                ON CONFLICT (user_id) DO NOTHING
                """
            ),
            {**answers, "user_id": user_id, "current_step": QUESTIONNAIRE_STEPS if is_complete else rng.randint(0, QUESTIONNAIRE_STEPS - 1)},
        )
        genders[gender] += 1
        completed += int(is_complete)

    db.commit()
    return {
        "participants_created": n_participants,
        "questionnaire_complete": completed,
        "gender_counts": genders,
        "deleted_previous": deleted,
        "seed": seed,
    }
