"""Who is playing.

The auth provider lives outside this package. Anything that can answer
"which user is this, if any" satisfies IdentityProvider; the HTTP shell reads
a header set by the upstream proxy, demos and tests use StaticIdentity.
"""

from __future__ import annotations

from typing import Protocol


class IdentityUnavailableError(RuntimeError):
    """No signed-in user. Callers should wait for sign-in and retry."""


class IdentityProvider(Protocol):
    def current_user_id(self) -> str | None: ...


class StaticIdentity:
    """Always the same user, or nobody when user_id is None."""

    def __init__(self, user_id: str | None) -> None:
        self._user_id = user_id

    def current_user_id(self) -> str | None:
        return self._user_id


def require_user(identity: IdentityProvider) -> str:
    user_id = identity.current_user_id()
    if not user_id:
        raise IdentityUnavailableError("No signed-in user")
    return user_id
