"""Tests for questforge.session — quest use cases over a real store."""

import pytest

from conftest import FixedRandom
from questforge.identity import IdentityUnavailableError, StaticIdentity
from questforge.models import Character, TaskInput
from questforge.session import (
    QuestAlreadyCompletedError,
    QuestNotFoundError,
    QuestSession,
    character_view,
)
from questforge.storage import Storage, StorageError


def _session(storage: Storage, user_id: str | None = "hero", rng=None) -> QuestSession:
    return QuestSession(storage, StaticIdentity(user_id), rng=rng or FixedRandom(0.99))


# ── Identity ────────────────────────────────────────────


def test_no_identity_blocks_everything(storage: Storage):
    session = _session(storage, user_id=None)
    with pytest.raises(IdentityUnavailableError):
        session.ensure_character()
    with pytest.raises(IdentityUnavailableError):
        session.add_quest(TaskInput(name="Run"))
    with pytest.raises(IdentityUnavailableError):
        session.complete_quest("anything")
    assert list((storage.base_path / "users").iterdir()) == []


# ── Character bootstrap ─────────────────────────────────


def test_first_visit_creates_default_character(storage: Storage):
    session = _session(storage)
    c = session.ensure_character()
    assert c == Character()
    assert storage.load_character("hero") == Character()


def test_existing_character_is_not_reset(storage: Storage):
    storage.save_character("hero", Character(gold=99))
    assert _session(storage).ensure_character().gold == 99


def test_character_view_contents():
    view = character_view(Character(strength=13, health=101, avatar_style="glitter"))
    assert view["strength"] == 13
    assert view["avatarStyle"] == "glitter"
    assert view["avatarColor"] == "#6b7280"
    assert view["stats"]["attack"] == 22
    assert view["experienceToNext"] == 100


# ── Quests ──────────────────────────────────────────────


def test_add_and_list_quests(storage: Storage):
    session = _session(storage)
    task = session.add_quest(TaskInput(name="Run", difficulty="hard", type="physical"))
    assert task.name == "Run"
    assert [t.id for t in session.list_quests()] == [task.id]


def test_complete_quest_applies_rewards_and_hides_quest(storage: Storage):
    session = _session(storage)
    task = session.add_quest(TaskInput(name="Run", difficulty="easy", type="physical"))

    outcome = session.complete_quest(task.id)

    assert outcome.character.strength == 13
    assert outcome.character.health == 101
    assert outcome.character.gold == 10
    assert outcome.character.experience == 20
    assert outcome.task.completed is True
    assert outcome.events == []
    assert storage.load_character("hero") == outcome.character
    assert session.list_quests() == []


def test_complete_quest_reports_level_up_and_loot(storage: Storage):
    storage.save_character("hero", Character(experience=95))
    session = _session(storage, rng=FixedRandom(0.01, 0.5))
    task = session.add_quest(TaskInput(name="Run", difficulty="easy", type="physical"))

    outcome = session.complete_quest(task.id)

    assert outcome.character.level == 2
    assert outcome.character.experience == 15
    assert outcome.character.inventory == ["Mystery Item #51"]
    assert [e.type for e in outcome.events] == ["level_up", "item_acquired"]


def test_complete_production_quest_double_gold(storage: Storage):
    session = _session(storage)
    task = session.add_quest(TaskInput(name="Ship it", difficulty="hard", type="production"))
    assert session.complete_quest(task.id).character.gold == 200


def test_complete_quest_twice_rejected(storage: Storage):
    session = _session(storage)
    task = session.add_quest(TaskInput(name="Run"))
    session.complete_quest(task.id)
    with pytest.raises(QuestAlreadyCompletedError):
        session.complete_quest(task.id)
    assert storage.load_character("hero").gold == 10


def test_complete_unknown_quest(storage: Storage):
    with pytest.raises(QuestNotFoundError):
        _session(storage).complete_quest("nope")


def test_quests_are_per_user(storage: Storage):
    task = _session(storage, "alice").add_quest(TaskInput(name="Run"))
    with pytest.raises(QuestNotFoundError):
        _session(storage, "bob").complete_quest(task.id)


def test_unknown_difficulty_quest_completes_without_reward(storage: Storage):
    session = _session(storage)
    task = session.add_quest(TaskInput(name="Odd", difficulty="legendary", type="cooking"))
    outcome = session.complete_quest(task.id)
    assert outcome.character == Character()
    assert session.list_quests() == []


def test_abandon_quest(storage: Storage):
    session = _session(storage)
    task = session.add_quest(TaskInput(name="Run"))
    session.abandon_quest(task.id)
    assert session.list_quests() == []
    assert storage.get_task("hero", task.id) is None
    assert session.ensure_character() == Character()


def test_abandon_completed_quest_rejected(storage: Storage):
    session = _session(storage)
    task = session.add_quest(TaskInput(name="Run"))
    session.complete_quest(task.id)
    with pytest.raises(QuestAlreadyCompletedError):
        session.abandon_quest(task.id)


def test_abandon_unknown_quest(storage: Storage):
    with pytest.raises(QuestNotFoundError):
        _session(storage).abandon_quest("nope")


# ── Failure handling ────────────────────────────────────


class FailingSaveStorage(Storage):
    def save_character(self, user_id, character):
        raise StorageError("disk full")


def test_failed_save_leaves_quest_and_character_untouched(data_dir):
    storage = FailingSaveStorage(data_dir)
    Storage.save_character(storage, "hero", Character(gold=7))
    session = _session(storage)
    task = session.add_quest(TaskInput(name="Run"))

    with pytest.raises(StorageError):
        session.complete_quest(task.id)

    assert storage.load_character("hero").gold == 7
    assert [t.id for t in session.list_quests()] == [task.id]


class FailingMarkStorage(Storage):
    fail = True

    def mark_task_completed(self, user_id, task_id):
        if self.fail:
            raise StorageError("disk full")
        super().mark_task_completed(user_id, task_id)


def test_failed_mark_restores_character(data_dir):
    storage = FailingMarkStorage(data_dir)
    storage.save_character("hero", Character(gold=7))
    session = _session(storage)
    task = session.add_quest(TaskInput(name="Run"))

    with pytest.raises(StorageError):
        session.complete_quest(task.id)

    assert storage.load_character("hero") == Character(gold=7)
    assert [t.id for t in session.list_quests()] == [task.id]


def test_retry_after_failed_mark_pays_once(data_dir):
    storage = FailingMarkStorage(data_dir)
    session = _session(storage)
    task = session.add_quest(TaskInput(name="Run"))

    with pytest.raises(StorageError):
        session.complete_quest(task.id)
    storage.fail = False
    session.complete_quest(task.id)

    hero = storage.load_character("hero")
    assert (hero.gold, hero.experience) == (10, 20)
    assert session.list_quests() == []


# ── Avatar ──────────────────────────────────────────────


def test_change_avatar_persists_value_as_given(storage: Storage):
    session = _session(storage)
    updated = session.change_avatar("glitter")
    assert updated.avatar_style == "glitter"
    assert storage.load_character("hero").avatar_style == "glitter"


# ── Live updates ────────────────────────────────────────


async def test_watch_quests_streams_changes(storage: Storage):
    session = _session(storage)
    async with session.watch_quests() as stream:
        assert await stream.__anext__() == []
        task = session.add_quest(TaskInput(name="Run"))
        assert [t.id for t in await stream.__anext__()] == [task.id]
        session.complete_quest(task.id)
        assert await stream.__anext__() == []


async def test_watch_character_streams_changes(storage: Storage):
    session = _session(storage)
    session.ensure_character()
    async with session.watch_character() as stream:
        assert (await stream.__anext__()).gold == 0
        task = session.add_quest(TaskInput(name="Run"))
        session.complete_quest(task.id)
        assert (await stream.__anext__()).gold == 10
