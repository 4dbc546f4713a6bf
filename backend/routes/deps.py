"""Per-request wiring: who is calling and which store to use."""

from fastapi import Request

from questforge.session import QuestSession
from questforge.storage import valid_user_id


class HeaderIdentity:
    """Identity taken from a header set by the upstream auth proxy."""

    def __init__(self, request: Request) -> None:
        settings = request.app.state.settings
        value = request.headers.get(settings.user_header, "").strip()
        user_id = value or settings.dev_user
        self._user_id = user_id if valid_user_id(user_id) else None

    def current_user_id(self) -> str | None:
        return self._user_id


def get_session(request: Request) -> QuestSession:
    rng = getattr(request.app.state, "rng", None)
    kwargs = {"rng": rng} if rng is not None else {}
    return QuestSession(request.app.state.storage, HeaderIdentity(request), **kwargs)
