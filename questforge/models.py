"""Core domain models.

The engine, the store and the HTTP shell all pass these types around.
Pydantic is used for validation and serialisation at every data boundary.
Persisted field names (``avatarStyle``, ``createdAt``) are fixed by the stored
documents; Python code uses the snake_case attribute names.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_AVATAR_STYLE = "default"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, raw: str | None) -> Difficulty | None:
        """Return the matching difficulty, or None for anything unrecognised."""
        try:
            return cls(raw)
        except ValueError:
            return None


class QuestType(str, Enum):
    GENERAL = "general"
    PHYSICAL = "physical"
    MENTAL = "mental"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, raw: str | None) -> QuestType:
        """Unknown quest types are treated as general quests."""
        try:
            return cls(raw)
        except ValueError:
            return cls.GENERAL


class AvatarStyle(str, Enum):
    DEFAULT = DEFAULT_AVATAR_STYLE
    CRIMSON = "crimson"
    EMERALD = "emerald"
    SAPPHIRE = "sapphire"
    AMBER = "amber"
    VIOLET = "violet"

    @classmethod
    def parse(cls, raw: str | None) -> AvatarStyle:
        """Unknown or missing styles fall back to the default swatch."""
        try:
            return cls(raw)
        except ValueError:
            return cls.DEFAULT


class Character(BaseModel):
    """The player's persistent character. One per user, never deleted."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    health: int = Field(default=100, ge=0)
    intelligence: int = Field(default=10, ge=0)
    strength: int = Field(default=10, ge=0)
    gold: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    experience: int = Field(default=0, ge=0)
    inventory: list[str] = Field(default_factory=list)
    # Stored as given; see questforge.avatar for the display fallback.
    avatar_style: str = Field(default=DEFAULT_AVATAR_STYLE, alias="avatarStyle")

    @field_validator("avatar_style", mode="before")
    @classmethod
    def _missing_style_is_default(cls, value: object) -> object:
        return DEFAULT_AVATAR_STYLE if value is None else value

    def to_document(self) -> dict:
        """Serialise with the persisted field names."""
        return self.model_dump(by_alias=True)


class TaskInput(BaseModel):
    """What the user supplies when creating a quest."""

    name: str = Field(min_length=1)
    difficulty: str = Difficulty.EASY.value
    type: str = QuestType.GENERAL.value

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Task(BaseModel):
    """A quest as stored. Difficulty and type are kept as given."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    difficulty: str
    type: str
    completed: bool = False
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class DerivedStats(BaseModel):
    """Combat stats computed from a character. Never persisted."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    max_health: float = Field(alias="maxHealth")
    max_mana: float = Field(alias="maxMana")
    attack: float
    defense: float


class ProgressionEvent(BaseModel):
    """Something worth telling the player after a quest is completed."""

    type: Literal["level_up", "item_acquired"]
    level: int | None = None  # present on level_up
    item: str | None = None  # present on item_acquired
