"""Quest session — the use cases behind the UI.

A session is built per caller from two injected collaborators:

    storage   PersistenceGateway (reads, merge-writes, push subscriptions)
    identity  IdentityProvider (who is playing)

Quest completion flow:
  1. Resolve the user (IdentityUnavailableError if nobody is signed in).
  2. Load the character, creating the default one for a first-time user.
  3. Look up the quest; it must exist and still be active.
  4. Run the progression engine on the snapshot.
  5. Save the full updated character, then mark the quest completed. If
     marking fails, the previous character is saved back.
  6. Log level-ups and loot; return the outcome for the caller to show.

The engine result is complete before the first write, so a failing store
never leaves a half-updated character behind.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any

from questforge.avatar import avatar_color, change_avatar_style
from questforge.events import SnapshotStream
from questforge.identity import IdentityProvider, require_user
from questforge.models import Character, ProgressionEvent, Task, TaskInput
from questforge.progression import RandomSource, apply_task_completion
from questforge.stats import display_stats, experience_to_next_level
from questforge.storage import PersistenceGateway, StorageError

logger = logging.getLogger(__name__)


class QuestNotFoundError(LookupError):
    """The quest id does not exist for this user."""


class QuestAlreadyCompletedError(RuntimeError):
    """The quest was completed before; rewards are granted once."""


@dataclass
class QuestOutcome:
    character: Character
    task: Task
    events: list[ProgressionEvent] = field(default_factory=list)


def character_view(character: Character) -> dict[str, Any]:
    """Character document plus everything the UI derives from it."""
    return {
        **character.to_document(),
        "stats": display_stats(character),
        "avatarColor": avatar_color(character.avatar_style),
        "experienceToNext": experience_to_next_level(character),
    }


class QuestSession:
    def __init__(
        self,
        storage: PersistenceGateway,
        identity: IdentityProvider,
        *,
        rng: RandomSource = random.random,
    ) -> None:
        self._storage = storage
        self._identity = identity
        self._rng = rng

    @property
    def user_id(self) -> str:
        return require_user(self._identity)

    # ------------------------------------------------------------------
    # Character
    # ------------------------------------------------------------------

    def ensure_character(self) -> Character:
        """Return the stored character, creating the default one if missing."""
        user_id = self.user_id
        character = self._storage.load_character(user_id)
        if character is None:
            character = Character()
            self._storage.save_character(user_id, character)
            logger.info("Created character for user=%s", user_id)
        return character

    def character_view(self) -> dict[str, Any]:
        return character_view(self.ensure_character())

    def change_avatar(self, style_id: str) -> Character:
        user_id = self.user_id
        character = change_avatar_style(self.ensure_character(), style_id)
        self._storage.save_character(user_id, character)
        return character

    # ------------------------------------------------------------------
    # Quests
    # ------------------------------------------------------------------

    def list_quests(self) -> list[Task]:
        return self._storage.list_tasks(self.user_id)

    def add_quest(self, task_input: TaskInput) -> Task:
        user_id = self.user_id
        task_id = self._storage.create_task(user_id, task_input)
        task = self._storage.get_task(user_id, task_id)
        if task is None:
            raise QuestNotFoundError(task_id)
        logger.info(
            "Quest added user=%s id=%s difficulty=%s type=%s",
            user_id, task_id, task.difficulty, task.type,
        )
        return task

    def abandon_quest(self, task_id: str) -> None:
        """Drop an active quest without any reward."""
        user_id = self.user_id
        task = self._storage.get_task(user_id, task_id)
        if task is None:
            raise QuestNotFoundError(task_id)
        if task.completed:
            raise QuestAlreadyCompletedError(task_id)
        self._storage.delete_task(user_id, task_id)
        logger.info("Quest abandoned user=%s id=%s", user_id, task_id)

    def complete_quest(self, task_id: str) -> QuestOutcome:
        user_id = self.user_id
        character = self.ensure_character()

        task = self._storage.get_task(user_id, task_id)
        if task is None:
            raise QuestNotFoundError(task_id)
        if task.completed:
            raise QuestAlreadyCompletedError(task_id)

        updated, events = apply_task_completion(
            character, task.difficulty, task.type, rng=self._rng
        )
        self._storage.save_character(user_id, updated)
        try:
            self._storage.mark_task_completed(user_id, task_id)
        except StorageError:
            # Quest still active: restore the pre-reward character.
            logger.warning("Rolling back rewards user=%s id=%s", user_id, task_id)
            self._storage.save_character(user_id, character)
            raise

        logger.info(
            "Quest completed user=%s id=%s gold=%d exp=%d level=%d",
            user_id, task_id, updated.gold, updated.experience, updated.level,
        )
        for event in events:
            if event.type == "level_up":
                logger.info("Level up user=%s level=%d", user_id, event.level)
            else:
                logger.info("Loot user=%s item=%s", user_id, event.item)

        return QuestOutcome(
            character=updated,
            task=task.model_copy(update={"completed": True}),
            events=events,
        )

    # ------------------------------------------------------------------
    # Live updates (call from inside a running event loop)
    # ------------------------------------------------------------------

    def watch_character(self) -> SnapshotStream[Character | None]:
        user_id = self.user_id
        return SnapshotStream(lambda cb: self._storage.subscribe_character(user_id, cb))

    def watch_quests(self) -> SnapshotStream[list[Task]]:
        user_id = self.user_id
        return SnapshotStream(lambda cb: self._storage.subscribe_tasks(user_id, cb))
