"""Derived combat stats.

Every display of max health, mana, attack or defense goes through
derive_stats() so the numbers agree everywhere. Values stay fractional;
display_stats() rounds them for presentation only.
"""

import math

from questforge.models import Character, DerivedStats

BASE_HEALTH = 100
EXP_PER_LEVEL = 100


def derive_stats(character: Character) -> DerivedStats:
    """Compute maxHealth, maxMana, attack and defense for a character."""
    return DerivedStats(
        max_health=BASE_HEALTH + character.health * 2 + character.level * 10,
        max_mana=character.intelligence * 5 + character.level * 5,
        attack=character.strength * 1.5 + character.level * 2,
        defense=character.health * 0.8 + character.level * 1,
    )


def display_stats(character: Character) -> dict[str, int]:
    stats = derive_stats(character)
    return {key: math.floor(value + 0.5) for key, value in stats.model_dump(by_alias=True).items()}


def level_threshold(level: int) -> int:
    """Experience needed to leave the given level."""
    return level * EXP_PER_LEVEL


def experience_to_next_level(character: Character) -> int:
    return max(0, level_threshold(character.level) - character.experience)
