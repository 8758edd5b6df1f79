"""
Error taxonomy shared by the matching run and the admin actions.

Every error carries a machine-readable ``reason`` and a ``trace_id`` so the
HTTP layer can return a structured body and the log line can be found again.
"""

import uuid
from typing import Any

from fastapi import HTTPException


class PerfectDateError(Exception):
    """Base class; subclasses pin the status code and reason."""

    status_code = 500
    reason = "internal_error"

    def __init__(self, detail: str, *, reason: str | None = None):
        self.detail = detail
        if reason:
            self.reason = reason
        self.trace_id = str(uuid.uuid4())
        super().__init__(detail)

    def to_detail(self) -> dict[str, Any]:
        return {
            "success": False,
            "message": self.detail,
            "reason": self.reason,
            "trace_id": self.trace_id,
        }

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.to_detail())


class InsufficientParticipantsError(PerfectDateError):
    status_code = 400
    reason = "insufficient_participants"


class MatchingAlreadyRunError(PerfectDateError):
    status_code = 409
    reason = "already_run"


class PersistenceError(PerfectDateError):
    status_code = 500
    reason = "persistence_failure"


class InvalidInputError(PerfectDateError):
    status_code = 400
    reason = "invalid_input"


class NotFoundError(PerfectDateError):
    status_code = 404
    reason = "not_found"
