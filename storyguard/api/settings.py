"""Health check and settings endpoints."""

from fastapi import APIRouter, Depends

from storyguard.config import get_config, update_config
from storyguard.storage import Storage

from .deps import get_storage

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings(storage: Storage = Depends(get_storage)):
    """Get global settings (collaborator connection, voice tunables)."""
    return get_config(storage.base)


@router.patch("/settings")
async def update_settings(body: dict, storage: Storage = Depends(get_storage)):
    """Update global settings (partial merge)."""
    return update_config(storage.base, body)
