"""
Participant authentication dependencies.

Sign-in itself (the emailed one-time code) is handled by the external auth
provider; this API only verifies the bearer token it issues. The token
subject is the auth user id that participants and questionnaire responses
are keyed by.
"""

import logging
import uuid
from typing import Any

from fastapi import Depends, Header, HTTPException

from perfect_date import repo
from perfect_date.auth.security import decode_access_token
from perfect_date.config import DEV_MODE

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when the Authorization header cannot be used."""

    def __init__(self, reason: str, detail: str = "unauthorized"):
        self.reason = reason
        self.detail = detail
        self.trace_id = str(uuid.uuid4())
        super().__init__(detail)


def _unauthorized(message: str, reason: str, trace_id: str) -> HTTPException:
    detail: dict[str, Any] = {"message": message, "trace_id": trace_id}
    if DEV_MODE:
        detail["reason"] = reason
    return HTTPException(status_code=401, detail=detail)


def _extract_bearer(authorization: str | None) -> str:
    if not authorization:
        raise AuthError(reason="missing_token", detail="Authentication required")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthError(reason="malformed_token", detail="Invalid Authorization header")
    return parts[1].strip()


def get_current_user(authorization: str | None = Header(default=None, alias="Authorization")) -> dict[str, Any]:
    try:
        token = _extract_bearer(authorization)
    except AuthError as e:
        logger.warning("[auth] rejected reason=%s trace_id=%s", e.reason, e.trace_id)
        raise _unauthorized(e.detail, e.reason, e.trace_id)

    trace_id = str(uuid.uuid4())
    try:
        payload = decode_access_token(token)
    except HTTPException as exc:
        reason = "token_expired" if "expired" in str(exc.detail).lower() else "signature_invalid"
        logger.warning("[auth] rejected reason=%s trace_id=%s token_prefix=%s...", reason, trace_id, token[:8])
        raise _unauthorized("unauthorized", reason, trace_id)

    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        logger.warning("[auth] rejected reason=token_missing_subject trace_id=%s", trace_id)
        raise _unauthorized("unauthorized", "token_missing_subject", trace_id)

    logger.debug("[auth] token valid sub=%s", user_id)
    return {"id": user_id, "email": payload.get("email")}


def require_participant(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    participant = repo.get_participant_by_user_id(str(current_user["id"]))
    if not participant:
        raise HTTPException(status_code=404, detail="Participant not registered")
    return participant
