"""FastAPI endpoints under /api.

Endpoint groups: settings, projects (manuscript snapshots), issues (check,
status actions, voice fixes) and continuity (facts, conflicts, extraction).
Every project resource is nested under /api/projects/{slug}/.
"""

from fastapi import APIRouter

from .continuity import router as continuity_router
from .issues import router as issues_router
from .projects import router as projects_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(projects_router)
router.include_router(issues_router)
router.include_router(continuity_router)
