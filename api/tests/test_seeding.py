import random

from perfect_date.config import ANSWER_FIELDS, GENDERS, MCQ_OPTIONS, RANKING_ITEMS
from perfect_date.services.seeding import SEED_EMAIL_DOMAIN, _generate_answers, seed_dummy_participants



class FakeDB:
    def __init__(self):
        self.calls = []
        self.commits = 0

    def execute(self, stmt, params=None):
        self.calls.append((str(stmt), params))

        class R:
            rowcount = 0

        return R()

    def commit(self):
        self.commits += 1


def test_generated_answers_are_valid():
    answers = _generate_answers(random.Random(7), skip_rate=0.0)
    assert set(answers) == set(ANSWER_FIELDS)
    for key, options in MCQ_OPTIONS.items():
        assert answers[key] in options
    for key, items in RANKING_ITEMS.items():
        assert sorted(answers[key]) == sorted(items)


def test_seed_is_deterministic_and_tagged():
    db1, db2 = FakeDB(), FakeDB()
    out1 = seed_dummy_participants(db1, n_participants=12, seed=3)
    out2 = seed_dummy_participants(db2, n_participants=12, seed=3)
    assert out1 == out2
    assert out1["participants_created"] == 12
    assert sum(out1["gender_counts"].values()) == 12
    assert set(out1["gender_counts"]) == set(GENDERS)
    assert db1.commits == 1

    participant_inserts = [p for sql, p in db1.calls if "INSERT INTO participants" in sql]
    assert len(participant_inserts) == 12
    assert all(p["email"].endswith(f"@{SEED_EMAIL_DOMAIN}") for p in participant_inserts)
    assert all(p["partner_preference"] for p in participant_inserts)


def test_reset_clears_previous_seed_rows():
    db = FakeDB()
    seed_dummy_participants(db, n_participants=2, reset=True)
    deletes = [sql for sql, _ in db.calls if "DELETE FROM" in sql]
    assert any("matches" in sql for sql in deletes)
    assert any("participants" in sql for sql in deletes)
