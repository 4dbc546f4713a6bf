"""Quest endpoints: list, create, complete, abandon."""

from fastapi import APIRouter, Depends, HTTPException

from questforge.progression import REWARD_TABLE
from questforge.session import (
    QuestAlreadyCompletedError,
    QuestNotFoundError,
    QuestSession,
    character_view,
)

from .deps import get_session
from .models import CreateQuest

router = APIRouter()


@router.get("/rewards")
async def rewards():
    """Reward table by difficulty, for previews in the quest form."""
    return {
        difficulty.value: reward._asdict()
        for difficulty, reward in REWARD_TABLE.items()
    }


@router.get("/quests")
async def list_quests(session: QuestSession = Depends(get_session)):
    """Active quests, oldest first."""
    return [t.to_document() for t in session.list_quests()]


@router.post("/quests", status_code=201)
async def create_quest(body: CreateQuest, session: QuestSession = Depends(get_session)):
    """Create a new quest."""
    return session.add_quest(body).to_document()


@router.post("/quests/{task_id}/complete")
async def complete_quest(task_id: str, session: QuestSession = Depends(get_session)):
    """Complete a quest and apply its rewards to the character."""
    try:
        outcome = session.complete_quest(task_id)
    except QuestNotFoundError:
        raise HTTPException(404, "Quest not found")
    except QuestAlreadyCompletedError:
        raise HTTPException(409, "Quest already completed")
    return {
        "character": character_view(outcome.character),
        "quest": outcome.task.to_document(),
        "events": [e.model_dump(exclude_none=True) for e in outcome.events],
    }


@router.delete("/quests/{task_id}")
async def abandon_quest(task_id: str, session: QuestSession = Depends(get_session)):
    """Remove an active quest without rewards."""
    try:
        session.abandon_quest(task_id)
    except QuestNotFoundError:
        raise HTTPException(404, "Quest not found")
    except QuestAlreadyCompletedError:
        raise HTTPException(409, "Quest already completed")
    return {"ok": True}
