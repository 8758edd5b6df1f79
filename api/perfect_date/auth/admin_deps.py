from __future__ import annotations

import logging
from typing import Any

from fastapi import Header, HTTPException

from perfect_date import config
from perfect_date.auth.security import decode_admin_access_token

logger = logging.getLogger(__name__)


def _extract_bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None
    return parts[1].strip()


def get_current_admin(
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_admin_token: str | None = Header(default=None, alias="X-Admin-Token"),
) -> dict[str, Any]:
    bearer = _extract_bearer(authorization)
    if bearer:
        payload = decode_admin_access_token(bearer)
        admin_id = str(payload.get("sub") or "").strip()
        if not admin_id or str(payload.get("role") or "").lower() != "admin":
            raise HTTPException(status_code=403, detail="Forbidden - Admin access required")
        return {
            "id": admin_id,
            "email": str(payload.get("email") or ""),
            "auth_mode": "bearer",
        }

    runtime_admin_token = str(getattr(config, "ADMIN_TOKEN", "") or "")
    if runtime_admin_token and x_admin_token and x_admin_token == runtime_admin_token:
        return {
            "id": None,
            "email": "admin-token",
            "auth_mode": "token",
        }

    logger.warning("[auth] admin access denied (token supplied=%s)", bool(x_admin_token))
    raise HTTPException(status_code=401, detail="Admin authentication required")


def admin_actor(admin_user: dict[str, Any]) -> str:
    return str(admin_user.get("id") or admin_user.get("email") or "admin")
