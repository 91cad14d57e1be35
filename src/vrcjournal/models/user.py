"""Local user model (an account that has logged in on this machine)."""

from dataclasses import dataclass
from typing import Any, Self


@dataclass(frozen=True, slots=True)
class LocalUser:
    """A local account known to the backend.

    Attributes:
        id: Backend row identifier, used as the user filter.
        display_name: Current display name.
        user_id: Platform user identifier (``usr_...``).
        first_authenticated_at: ISO timestamp of the first login seen.
        last_authenticated_at: ISO timestamp of the latest login seen.
    """

    id: int
    display_name: str
    user_id: str = ""
    first_authenticated_at: str = ""
    last_authenticated_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create a user from a backend row (camelCase keys)."""
        return cls(
            id=int(data["id"]),
            display_name=str(data.get("displayName", "")),
            user_id=str(data.get("userId", "")),
            first_authenticated_at=str(data.get("firstAuthenticatedAt", "")),
            last_authenticated_at=str(data.get("lastAuthenticatedAt", "")),
        )
