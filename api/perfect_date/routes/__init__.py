from fastapi import APIRouter, FastAPI

from .admin import router as admin_router
from .match import router as match_router
from .participants import router as participants_router
from .questionnaire import router as questionnaire_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(participants_router, tags=["participants"])
    app.include_router(questionnaire_router, tags=["questionnaire"])
    app.include_router(match_router, tags=["matches"])
    app.include_router(admin_router, tags=["admin"])


__all__ = ["include_modular_routers", "APIRouter"]
