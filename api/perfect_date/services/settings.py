import json
from typing import Any

from sqlalchemy import text

from ..config import RESULTS_VISIBLE_KEY


def get_app_setting(db, key: str, default: Any = None) -> Any:
    row = db.execute(
        text("SELECT value FROM app_settings WHERE key=:key"),
        {"key": key},
    ).mappings().first()
    if not row:
        return default
    return row["value"]


def upsert_app_setting(db, key: str, value: Any) -> None:
    db.execute(
        text(
            """
            INSERT INTO app_settings (key, value, updated_at)
            VALUES (:key, CAST(:value AS jsonb), NOW())
            ON CONFLICT (key)
            DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
            """
        ),
        {"key": key, "value": json.dumps(value)},
    )


def results_visible(db) -> bool:
    return get_app_setting(db, RESULTS_VISIBLE_KEY, False) is True


def set_results_visible(db, visible: bool) -> None:
    upsert_app_setting(db, RESULTS_VISIBLE_KEY, bool(visible))
