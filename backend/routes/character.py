"""Character sheet and avatar endpoints."""

from fastapi import APIRouter, Depends

from questforge.avatar import list_avatar_styles
from questforge.session import QuestSession, character_view

from .deps import get_session
from .models import ChangeAvatar

router = APIRouter()


@router.get("/character")
async def get_character(session: QuestSession = Depends(get_session)):
    """Current character with derived stats. Creates it on first visit."""
    return session.character_view()


@router.patch("/character/avatar")
async def change_avatar(body: ChangeAvatar, session: QuestSession = Depends(get_session)):
    """Store a new avatar style. Unknown styles are kept and shown in the default color."""
    return character_view(session.change_avatar(body.style))


@router.get("/avatar-styles")
async def avatar_styles():
    """Selectable avatar styles and their swatch colors."""
    return list_avatar_styles()
