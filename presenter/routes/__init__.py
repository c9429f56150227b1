"""
presenter/routes/__init__.py
Route registration. Everything here is mounted under /api.
"""
from fastapi import APIRouter

from presenter.routes import auth, diagnostics, export, grades, presentations, rubric, session, teams

router = APIRouter()

router.include_router(auth.router)
router.include_router(session.router)
router.include_router(teams.router)
router.include_router(rubric.router)
router.include_router(presentations.router)
router.include_router(grades.router)
router.include_router(export.router)
router.include_router(diagnostics.router)
