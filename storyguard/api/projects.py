"""Project snapshot CRUD endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from storyguard.models import Manuscript
from storyguard.storage import Storage

from .deps import get_storage, load_manuscript

router = APIRouter()


@router.get("/projects")
async def list_projects(storage: Storage = Depends(get_storage)):
    """List stored project slugs."""
    return storage.list_projects()


@router.get("/projects/{slug}")
async def get_project(slug: str, storage: Storage = Depends(get_storage)) -> Manuscript:
    """Get a project's manuscript snapshot."""
    return load_manuscript(storage, slug)


@router.put("/projects/{slug}")
async def put_project(
    slug: str, body: Manuscript, storage: Storage = Depends(get_storage)
) -> Manuscript:
    """Replace a project's manuscript snapshot. Issue statuses are kept."""
    storage.save_manuscript(slug, body)
    return body


@router.delete("/projects/{slug}")
async def delete_project(slug: str, storage: Storage = Depends(get_storage)):
    """Delete a project and its issue statuses."""
    if not storage.delete_project(slug):
        raise HTTPException(404, "Project not found")
    return {"ok": True}
