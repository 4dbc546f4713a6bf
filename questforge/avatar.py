"""Avatar style swatches.

The stored style id is never validated: an unknown id is kept as given and
only the displayed color falls back to the default swatch.
"""

from questforge.models import AvatarStyle, Character

AVATAR_SWATCHES: dict[AvatarStyle, str] = {
    AvatarStyle.DEFAULT: "#6b7280",
    AvatarStyle.CRIMSON: "#dc2626",
    AvatarStyle.EMERALD: "#059669",
    AvatarStyle.SAPPHIRE: "#2563eb",
    AvatarStyle.AMBER: "#d97706",
    AvatarStyle.VIOLET: "#7c3aed",
}

DEFAULT_SWATCH = AVATAR_SWATCHES[AvatarStyle.DEFAULT]


def avatar_color(style_id: str | None) -> str:
    return AVATAR_SWATCHES.get(AvatarStyle.parse(style_id), DEFAULT_SWATCH)


def list_avatar_styles() -> list[dict[str, str]]:
    """Style ids and colors in picker order."""
    return [{"id": style.value, "color": color} for style, color in AVATAR_SWATCHES.items()]


def change_avatar_style(character: Character, style_id: str) -> Character:
    return character.model_copy(update={"avatar_style": style_id})
