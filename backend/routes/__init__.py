"""FastAPI API endpoints under /api.

Endpoint groups: settings (health, GET/PATCH settings), dialogues (graph
CRUD + compile from Twee source), rooms (dialogue control per room and the
room WebSocket at /api/rooms/{room}/ws).
"""

from fastapi import APIRouter

from .dialogues import router as dialogues_router
from .rooms import router as rooms_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(dialogues_router)
router.include_router(rooms_router)
