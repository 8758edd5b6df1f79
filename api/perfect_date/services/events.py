import json
import uuid
from typing import Any

from sqlalchemy import text


def log_admin_event(
    db,
    *,
    action: str,
    actor: str | None = None,
    payload: dict[str, Any] | None = None,
) -> None:
    payload = payload or {}
    db.execute(
        text(
            """
            INSERT INTO admin_audit_event (id, action, actor, payload)
            VALUES (CAST(:id AS uuid), :action, :actor, CAST(:payload AS jsonb))
            """
        ),
        {
            "id": str(uuid.uuid4()),
            "action": action,
            "actor": actor,
            "payload": json.dumps(payload),
        },
    )


def list_admin_events(db, limit: int = 50) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            """
            SELECT id, action, actor, payload, created_at
            FROM admin_audit_event
            ORDER BY created_at DESC
            LIMIT :limit
            """
        ),
        {"limit": max(1, min(int(limit), 500))},
    ).mappings().all()
    return [dict(r) for r in rows]
