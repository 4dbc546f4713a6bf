"""Quest rewards, leveling and loot.

Reward table (by difficulty):
  easy    stat +3   gold +10   exp +20
  medium  stat +7   gold +25   exp +50
  hard    stat +15  gold +100  exp +100
  other   nothing

Stat allocation (by quest type, s = stat increase):
  physical    strength +s, health +s//2
  mental      intelligence +s, health +s//2
  production  intelligence +s//2, strength +s//2, gold +reward
  general     health, intelligence, strength each +s (also any unknown type)

Then gold and experience rewards are added. Production quests therefore pay
their gold twice.

Leveling: if experience reaches level * EXP_PER_LEVEL (level taken before the
quest), the character gains one level, the threshold is subtracted and health,
intelligence and strength each get LEVEL_UP_BONUS. One level per quest at most.

Loot: one draw from the random source; below LOOT_CHANCE a second draw picks
the item number in [1, 100].

apply_task_completion() never mutates its input and never logs or persists.
"""

from __future__ import annotations

import math
import random
from typing import NamedTuple, Protocol

from questforge.models import Character, Difficulty, ProgressionEvent, QuestType
from questforge.stats import level_threshold

LEVEL_UP_BONUS = 5
LOOT_CHANCE = 0.1
LOOT_PREFIX = "Mystery Item #"
LOOT_MAX_NUMBER = 100


class RandomSource(Protocol):
    """Returns a uniform float in [0, 1). random.random matches."""

    def __call__(self) -> float: ...


class Reward(NamedTuple):
    stat_increase: int
    gold: int
    experience: int


NO_REWARD = Reward(0, 0, 0)

REWARD_TABLE: dict[Difficulty, Reward] = {
    Difficulty.EASY: Reward(3, 10, 20),
    Difficulty.MEDIUM: Reward(7, 25, 50),
    Difficulty.HARD: Reward(15, 100, 100),
}


def reward_for(difficulty: str | None) -> Reward:
    """Look up the reward for a difficulty. Unknown values earn nothing."""
    parsed = Difficulty.parse(difficulty)
    if parsed is None:
        return NO_REWARD
    return REWARD_TABLE[parsed]


def roll_loot(rng: RandomSource) -> str | None:
    """Return a new item label, or None when the roll misses."""
    if rng() >= LOOT_CHANCE:
        return None
    number = min(LOOT_MAX_NUMBER, math.floor(rng() * LOOT_MAX_NUMBER) + 1)
    return f"{LOOT_PREFIX}{number}"


def apply_task_completion(
    character: Character,
    difficulty: str | None,
    quest_type: str | None,
    *,
    rng: RandomSource = random.random,
) -> tuple[Character, list[ProgressionEvent]]:
    """Apply one completed quest to a character.

    Returns the updated character and the notable events (level_up first,
    then item_acquired) for the caller to surface.
    """
    reward = reward_for(difficulty)
    s = reward.stat_increase

    health = character.health
    intelligence = character.intelligence
    strength = character.strength
    gold = character.gold

    kind = QuestType.parse(quest_type)
    if kind is QuestType.PHYSICAL:
        strength += s
        health += s // 2
    elif kind is QuestType.MENTAL:
        intelligence += s
        health += s // 2
    elif kind is QuestType.PRODUCTION:
        intelligence += s // 2
        strength += s // 2
        gold += reward.gold
    else:
        health += s
        intelligence += s
        strength += s

    gold += reward.gold
    experience = character.experience + reward.experience

    events: list[ProgressionEvent] = []

    level = character.level
    threshold = level_threshold(level)
    if experience >= threshold:
        level += 1
        experience -= threshold
        health += LEVEL_UP_BONUS
        intelligence += LEVEL_UP_BONUS
        strength += LEVEL_UP_BONUS
        events.append(ProgressionEvent(type="level_up", level=level))

    inventory = list(character.inventory)
    item = roll_loot(rng)
    if item is not None:
        inventory.append(item)
        events.append(ProgressionEvent(type="item_acquired", item=item))

    updated = character.model_copy(
        update={
            "health": health,
            "intelligence": intelligence,
            "strength": strength,
            "gold": gold,
            "level": level,
            "experience": experience,
            "inventory": inventory,
        }
    )
    return updated, events
