"""Preference value types and their parsing rules."""

from enum import StrEnum

# Selected-user sentinel meaning "no filter, show every local user".
ALL_USERS = -1


class Locale(StrEnum):
    """Supported UI languages."""

    JA = "ja"
    EN = "en"

    @classmethod
    def parse(cls, value: str | None) -> "Locale | None":
        """Return the matching locale, or None if value is not one."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def from_system(cls, tag: str | None) -> "Locale":
        """Map an OS locale tag (``ja_JP``, ``en-US``...) to a UI language."""
        if tag and tag.lower().startswith("ja"):
            return cls.JA
        return cls.EN


class Theme(StrEnum):
    """Supported color themes. SYSTEM follows the OS color scheme."""

    LIGHT = "light"
    DARK = "dark"
    CYBERPUNK = "cyberpunk"
    PASTEL = "pastel"
    AURORA = "aurora"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: str | None) -> "Theme | None":
        """Return the matching theme, or None if value is not one."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


def parse_user_filter(value: str | None) -> int | None:
    """Parse a persisted selected-user value.

    Returns:
        ALL_USERS, a non-negative user id, or None if the value is unusable.
    """
    if value is None:
        return None
    try:
        parsed = int(value.strip())
    except ValueError:
        return None
    if parsed == ALL_USERS or parsed >= 0:
        return parsed
    return None
