"""Server-sent event streams of character and quest snapshots."""

import json
from collections.abc import AsyncIterator, Callable
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from questforge.events import SnapshotStream
from questforge.session import QuestSession, character_view

from .deps import get_session

router = APIRouter()


def _sse(payload: Any) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def _relay(
    request: Request, stream: SnapshotStream, render: Callable[[Any], Any]
) -> AsyncIterator[str]:
    async with stream:
        async for snapshot in stream:
            if await request.is_disconnected():
                break
            yield _sse(render(snapshot))


@router.get("/stream/character")
async def stream_character(request: Request, session: QuestSession = Depends(get_session)):
    """Push the character sheet every time it changes."""
    session.ensure_character()
    stream = session.watch_character()
    return StreamingResponse(
        _relay(request, stream, lambda c: character_view(c) if c is not None else None),
        media_type="text/event-stream",
    )


@router.get("/stream/quests")
async def stream_quests(request: Request, session: QuestSession = Depends(get_session)):
    """Push the active quest list every time it changes."""
    stream = session.watch_quests()
    return StreamingResponse(
        _relay(request, stream, lambda tasks: [t.to_document() for t in tasks]),
        media_type="text/event-stream",
    )
