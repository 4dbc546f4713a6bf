"""Create a demo character and quest log for development/testing."""

from questforge.models import Character, TaskInput
from questforge.storage import Storage

DEMO_QUESTS = [
    {"name": "Morning run", "difficulty": "medium", "type": "physical"},
    {"name": "Read a chapter of a novel", "difficulty": "easy", "type": "mental"},
    {"name": "Ship the quarterly report", "difficulty": "hard", "type": "production"},
    {"name": "Tidy the desk", "difficulty": "easy", "type": "general"},
]


def create_demo_data(storage: Storage, user_id: str = "demo") -> None:
    """Reset the user's character and add the demo quests."""
    character = Character(
        health=104,
        intelligence=17,
        strength=21,
        gold=135,
        level=2,
        experience=60,
        inventory=["Mystery Item #42"],
        avatar_style="sapphire",
    )
    storage.save_character(user_id, character)
    for task in storage.list_tasks(user_id, include_completed=True):
        storage.delete_task(user_id, task.id)
    for quest in DEMO_QUESTS:
        storage.create_task(user_id, TaskInput(**quest))
