"""FastAPI API endpoints under /api.

Endpoint groups: health, character (sheet + avatar), quests (CRUD, completion,
reward preview) and streams (server-sent snapshots). Every endpoint except
health, avatar-styles and rewards acts on the signed-in user, identified by the
configured user header.
"""

from fastapi import APIRouter

from .character import router as character_router
from .health import router as health_router
from .quests import router as quests_router
from .stream import router as stream_router

router = APIRouter()
router.include_router(health_router)
router.include_router(character_router)
router.include_router(quests_router)
router.include_router(stream_router)
