"""Health check and settings endpoints."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from backend import storage

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings():
    """Get service settings (labels, pacing, cleanup)."""
    return storage.get_config()


@router.patch("/settings")
async def update_settings(body: dict, request: Request):
    """Update service settings (partial merge). Applies to the running runtime."""
    try:
        config = storage.update_config(body)
    except ValidationError as e:
        raise HTTPException(400, f"Invalid settings: {e}")
    request.app.state.runtime.settings = storage.runtime_settings_from_config(config)
    return config
