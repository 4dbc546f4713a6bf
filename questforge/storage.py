"""Persistence gateway — per-user documents with push subscriptions.

The session depends on the PersistenceGateway protocol only:

    load_character(user_id) -> Character | None
    save_character(user_id, character)          upsert, merges into the stored doc
    subscribe_character(user_id, callback)      -> Subscription
    subscribe_tasks(user_id, callback)          -> Subscription (active tasks)
    create_task(user_id, task_input) -> task id
    mark_task_completed(user_id, task_id)
    list_tasks(user_id), get_task(user_id, task_id), delete_task(user_id, task_id)

Storage implements it with flat JSON files under a base directory. There is no
database; every write replaces the whole file atomically, so a reader sees
either the old or the new document (last write wins).

Directory layout:

    {base}/
      users/
        {user_id}/
          character.json    ← Character document (persisted field names)
          tasks.json        ← list of Task documents, completed ones included

Subscribers are notified synchronously after each successful write. A user's
event source is dropped when its last subscriber detaches.

A stored character whose experience already reaches the next level threshold
is rejected on load (StorageError).
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
import uuid
from pathlib import Path
from typing import Any, Callable, Protocol

from pydantic import ValidationError

from questforge.events import EventSource, Subscription
from questforge.models import Character, Task, TaskInput
from questforge.stats import level_threshold

logger = logging.getLogger(__name__)

_USER_ID_RE = re.compile(r"^[A-Za-z0-9_.@-]+$")


def valid_user_id(user_id: str | None) -> bool:
    """User ids double as directory names, so only a safe alphabet is allowed."""
    return bool(user_id) and user_id not in (".", "..") and _USER_ID_RE.fullmatch(user_id) is not None


class StorageError(RuntimeError):
    """Raised when the store cannot be read or written."""


# ---------------------------------------------------------------------------
# Protocol: what the session needs from any store
# ---------------------------------------------------------------------------

class PersistenceGateway(Protocol):
    def load_character(self, user_id: str) -> Character | None: ...

    def save_character(self, user_id: str, character: Character) -> None: ...

    def subscribe_character(
        self, user_id: str, callback: Callable[[Character | None], None]
    ) -> Subscription: ...

    def subscribe_tasks(
        self, user_id: str, callback: Callable[[list[Task]], None]
    ) -> Subscription: ...

    def create_task(self, user_id: str, task_input: TaskInput) -> str: ...

    def mark_task_completed(self, user_id: str, task_id: str) -> None: ...

    def list_tasks(self, user_id: str, include_completed: bool = False) -> list[Task]: ...

    def get_task(self, user_id: str, task_id: str) -> Task | None: ...

    def delete_task(self, user_id: str, task_id: str) -> bool: ...


# ---------------------------------------------------------------------------
# Storage: JSON files
# ---------------------------------------------------------------------------

class Storage:
    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._users_root = self._base / "users"
        try:
            self._users_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self._users_root}") from e
        self._lock = threading.RLock()
        self._character_sources: dict[str, EventSource[Character | None]] = {}
        self._task_sources: dict[str, EventSource[list[Task]]] = {}

    @property
    def base_path(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _user_dir(self, user_id: str) -> Path:
        if not valid_user_id(user_id):
            raise ValueError(f"Invalid user id: {user_id!r}")
        return self._users_root / user_id

    def _character_file(self, user_id: str) -> Path:
        return self._user_dir(user_id) / "character.json"

    def _tasks_file(self, user_id: str) -> Path:
        return self._user_dir(user_id) / "tasks.json"

    def _read_json(self, path: Path, default: Any) -> Any:
        if not path.is_file():
            return default
        try:
            return json.loads(path.read_text())
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {path}") from e

    def _write_json(self, path: Path, data: Any) -> None:
        tmp_path = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2))
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Cannot write {path}") from e
        logger.debug("wrote %s", path)

    # ------------------------------------------------------------------
    # Characters
    # ------------------------------------------------------------------

    def load_character(self, user_id: str) -> Character | None:
        doc = self._read_json(self._character_file(user_id), None)
        if doc is None:
            return None
        try:
            character = Character.model_validate(doc)
        except ValidationError as e:
            raise StorageError(f"Stored character for {user_id} is invalid") from e
        if character.experience >= level_threshold(character.level):
            raise StorageError(
                f"Stored character for {user_id} has experience {character.experience} "
                f"at level {character.level}"
            )
        return character

    def save_character(self, user_id: str, character: Character) -> None:
        """Upsert the character. Unknown fields already stored are kept."""
        path = self._character_file(user_id)
        with self._lock:
            stored = self._read_json(path, {})
            if not isinstance(stored, dict):
                stored = {}
            stored.update(character.to_document())
            self._write_json(path, stored)
            source = self._character_sources.get(user_id)
        if source is not None:
            source.publish(character)

    def subscribe_character(
        self, user_id: str, callback: Callable[[Character | None], None]
    ) -> Subscription:
        self._user_dir(user_id)
        with self._lock:
            source = self._character_sources.get(user_id)
            if source is None:
                source = EventSource(
                    current=lambda: self.load_character(user_id),
                    on_idle=lambda: self._drop_source(self._character_sources, user_id),
                )
                self._character_sources[user_id] = source
            return source.subscribe(callback)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def _load_all_tasks(self, user_id: str) -> list[Task]:
        docs = self._read_json(self._tasks_file(user_id), [])
        try:
            return [Task.model_validate(d) for d in docs]
        except (ValidationError, TypeError) as e:
            raise StorageError(f"Stored tasks for {user_id} are invalid") from e

    def _save_all_tasks(self, user_id: str, tasks: list[Task]) -> None:
        self._write_json(self._tasks_file(user_id), [t.to_document() for t in tasks])

    def list_tasks(self, user_id: str, include_completed: bool = False) -> list[Task]:
        """Tasks ordered by creation time, oldest first."""
        tasks = self._load_all_tasks(user_id)
        if not include_completed:
            tasks = [t for t in tasks if not t.completed]
        return sorted(tasks, key=lambda t: t.created_at)

    def get_task(self, user_id: str, task_id: str) -> Task | None:
        for task in self._load_all_tasks(user_id):
            if task.id == task_id:
                return task
        return None

    def create_task(self, user_id: str, task_input: TaskInput) -> str:
        task = Task(
            id=uuid.uuid4().hex,
            name=task_input.name,
            difficulty=task_input.difficulty,
            type=task_input.type,
        )
        with self._lock:
            tasks = self._load_all_tasks(user_id)
            tasks.append(task)
            self._save_all_tasks(user_id, tasks)
        self._publish_tasks(user_id)
        return task.id

    def mark_task_completed(self, user_id: str, task_id: str) -> None:
        """Flag a task as completed. Raises KeyError for an unknown id."""
        with self._lock:
            tasks = self._load_all_tasks(user_id)
            for i, task in enumerate(tasks):
                if task.id == task_id:
                    tasks[i] = task.model_copy(update={"completed": True})
                    break
            else:
                raise KeyError(task_id)
            self._save_all_tasks(user_id, tasks)
        self._publish_tasks(user_id)

    def delete_task(self, user_id: str, task_id: str) -> bool:
        with self._lock:
            tasks = self._load_all_tasks(user_id)
            remaining = [t for t in tasks if t.id != task_id]
            if len(remaining) == len(tasks):
                return False
            self._save_all_tasks(user_id, remaining)
        self._publish_tasks(user_id)
        return True

    def subscribe_tasks(
        self, user_id: str, callback: Callable[[list[Task]], None]
    ) -> Subscription:
        self._user_dir(user_id)
        with self._lock:
            source = self._task_sources.get(user_id)
            if source is None:
                source = EventSource(
                    current=lambda: self.list_tasks(user_id),
                    on_idle=lambda: self._drop_source(self._task_sources, user_id),
                )
                self._task_sources[user_id] = source
            return source.subscribe(callback)

    def _publish_tasks(self, user_id: str) -> None:
        with self._lock:
            source = self._task_sources.get(user_id)
        if source is not None and source.listener_count:
            source.publish(self.list_tasks(user_id))

    def _drop_source(self, sources: dict[str, EventSource], user_id: str) -> None:
        with self._lock:
            source = sources.get(user_id)
            if source is not None and source.listener_count == 0:
                del sources[user_id]

    def source_count(self) -> int:
        """Number of per-user event sources currently held."""
        with self._lock:
            return len(self._character_sources) + len(self._task_sources)
