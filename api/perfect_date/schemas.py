from typing import Any

from pydantic import BaseModel, Field, StrictBool


class RegisterParticipantRequest(BaseModel):
    name: str
    email: str
    age: int
    gender: str
    partner_preference: list[str] = Field(default_factory=list)
    consent_given: bool = False


class SaveAnswersRequest(BaseModel):
    answers: dict[str, Any] = Field(default_factory=dict)
    current_step: Any = None


class RunMatchingRequest(BaseModel):
    force: StrictBool = False


# Loosely typed so malformed values reach the invalid-input checks instead of a 422.
class UpdateScoreRequest(BaseModel):
    field: Any = None
    value: Any = None


class VisibilityRequest(BaseModel):
    visible: Any = None
