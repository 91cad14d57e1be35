"""Persistent preference storage using QSettings."""

import logging

from PySide6.QtCore import QSettings

from vrcjournal.api.client import DEFAULT_HOST, DEFAULT_PORT

logger = logging.getLogger(__name__)

# Every preference lives under this group so it cannot collide with other data
PREFIX = "VRCJournal"

# Preference keys (relative to PREFIX)
KEY_THEME = "theme"
KEY_LOCALE = "locale"
KEY_SELECTED_USER = "selected-user"

# Backend connection
_KEY_BACKEND_HOST = "backend/host"
_KEY_BACKEND_PORT = "backend/port"


class ConfigManager:
    """String key-value preference store backed by QSettings.

    QSettings stores config in platform-specific locations:
    - Windows: HKEY_CURRENT_USER\\Software\\VRCJournal\\VRCJournal
    - macOS: ~/Library/Preferences/com.VRCJournal.VRCJournal.plist
    - Linux: ~/.config/VRCJournal/VRCJournal.conf

    Values are stored as plain strings; parsing and validation belong to
    the preference stores that own each key.

    Example:
        config = ConfigManager()
        config.set(KEY_THEME, "dark")
        config.get(KEY_THEME)  # "dark"
    """

    def __init__(
        self,
        organization: str = "VRCJournal",
        application: str = "VRCJournal",
        settings: QSettings | None = None,
    ) -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
            settings: Use this QSettings instead of the native location.
        """
        self._settings = settings if settings is not None else QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    @staticmethod
    def _key(key: str) -> str:
        return f"{PREFIX}/{key}"

    def get(self, key: str) -> str | None:
        """Return the stored string for key, or None if never set."""
        value = self._settings.value(self._key(key))
        if value is None:
            return None
        return str(value)

    def set(self, key: str, value: str) -> None:
        """Store a string value for key."""
        self._settings.setValue(self._key(key), value)

    def remove(self, key: str) -> None:
        """Delete a stored key (no-op if absent)."""
        self._settings.remove(self._key(key))

    # -- Backend connection ----------------------------------------------------

    def get_backend_host(self) -> str:
        """Return the backend host.

        Returns:
            Host string (default 127.0.0.1).
        """
        value = self._settings.value(_KEY_BACKEND_HOST, DEFAULT_HOST, str)
        return str(value) if value else DEFAULT_HOST

    def set_backend_host(self, host: str) -> None:
        """Set the backend host.

        Args:
            host: Hostname or IP.
        """
        self._settings.setValue(_KEY_BACKEND_HOST, host)

    def get_backend_port(self) -> int:
        """Return the backend port.

        Returns:
            Port number (default 7878).
        """
        value = self._settings.value(_KEY_BACKEND_PORT, DEFAULT_PORT)
        try:
            return max(1, min(65535, int(value)))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            logger.warning("Invalid stored backend port %r, using default", value)
            return DEFAULT_PORT

    def set_backend_port(self, port: int) -> None:
        """Set the backend port.

        Args:
            port: Port number (1-65535).
        """
        self._settings.setValue(_KEY_BACKEND_PORT, max(1, min(65535, port)))

    # -- General ---------------------------------------------------------------

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()
