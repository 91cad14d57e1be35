"""Process-wide preference stores: locale, theme and user selection.

Each store keeps its current value in memory, persists it through
:class:`~vrcjournal.core.config.ConfigManager` and announces changes with a
Qt signal. Setters are synchronous, so every reader sees a new value as soon
as the setter returns.
"""

import logging
from collections.abc import Awaitable, Callable

from PySide6.QtCore import QCoreApplication, QLocale, QObject, Signal

from vrcjournal.api.client import JournalClient
from vrcjournal.core.config import KEY_LOCALE, KEY_SELECTED_USER, KEY_THEME, ConfigManager
from vrcjournal.models.preferences import ALL_USERS, Locale, Theme, parse_user_filter
from vrcjournal.models.user import LocalUser

logger = logging.getLogger(__name__)

# Dynamic property set on the root object; stylesheets select on it
THEME_PROPERTY = "data-theme"

SystemLocaleQuery = Callable[[], Awaitable[str | None]]


async def query_system_locale() -> str | None:
    """Return the OS locale tag, e.g. ``ja_JP``."""
    return QLocale.system().name()


async def detect_system_locale(query: SystemLocaleQuery = query_system_locale) -> Locale:
    """Map the OS locale to a UI language.

    Falls back to Japanese if the OS cannot be queried.
    """
    try:
        tag = await query()
    except Exception as e:  # noqa: BLE001
        logger.warning("Failed to detect system locale, defaulting to ja: %s", e)
        return Locale.JA
    return Locale.from_system(tag)


class LocaleStore(QObject):
    """Current UI language.

    Example:
        store = LocaleStore(config)
        await store.init()
        store.locale_changed.connect(translator.switch)
    """

    locale_changed = Signal(str)

    def __init__(
        self,
        config: ConfigManager,
        system_locale: SystemLocaleQuery = query_system_locale,
    ) -> None:
        super().__init__()
        self._config = config
        self._system_locale = system_locale
        self._locale = Locale.JA

    @property
    def locale(self) -> Locale:
        """Return the current locale."""
        return self._locale

    def set_locale(self, locale: Locale | str) -> None:
        """Switch language and persist it.

        Raises:
            ValueError: If locale is not a supported language.
        """
        new_locale = Locale(locale)
        self._config.set(KEY_LOCALE, new_locale.value)
        self._apply(new_locale)

    async def init(self) -> None:
        """Load the saved locale, or detect it from the OS."""
        saved = Locale.parse(self._config.get(KEY_LOCALE))
        initial = saved if saved is not None else await detect_system_locale(self._system_locale)
        self._config.set(KEY_LOCALE, initial.value)
        self._apply(initial)

    def _apply(self, locale: Locale) -> None:
        changed = locale is not self._locale
        self._locale = locale
        if changed:
            self.locale_changed.emit(locale.value)


class ThemeStore(QObject):
    """Current color theme, mirrored onto the root object.

    Non-system themes are set as the ``data-theme`` dynamic property of the
    root (by default the running QApplication) so stylesheets can select on
    it. ``system`` removes the property and leaves styling to the OS.
    """

    theme_changed = Signal(str)

    def __init__(self, config: ConfigManager, root: QObject | None = None) -> None:
        super().__init__()
        self._config = config
        self._root = root
        self._theme = Theme.SYSTEM

    @property
    def theme(self) -> Theme:
        """Return the current theme."""
        return self._theme

    def set_theme(self, theme: Theme | str) -> None:
        """Switch theme, persist it and apply it to the root.

        Raises:
            ValueError: If theme is not a supported theme.
        """
        new_theme = Theme(theme)
        self._config.set(KEY_THEME, new_theme.value)
        self._apply(new_theme)

    def init(self) -> None:
        """Load and apply the saved theme (``system`` if unset or invalid)."""
        raw = self._config.get(KEY_THEME)
        saved = Theme.parse(raw)
        if saved is None:
            if raw is not None:
                logger.info("Ignoring invalid saved theme %r", raw)
                self._config.set(KEY_THEME, Theme.SYSTEM.value)
            saved = Theme.SYSTEM
        self._apply(saved)

    def _apply(self, theme: Theme) -> None:
        changed = theme is not self._theme
        self._theme = theme
        apply_theme(theme, self._root)
        if changed:
            self.theme_changed.emit(theme.value)


def apply_theme(theme: Theme, root: QObject | None = None) -> None:
    """Reflect a theme onto the root object's ``data-theme`` property."""
    if root is None:
        root = QCoreApplication.instance()
        if root is None:
            logger.debug("No application instance; theme %s not applied", theme)
            return

    if theme is Theme.SYSTEM:
        root.setProperty(THEME_PROPERTY, None)
    else:
        root.setProperty(THEME_PROPERTY, theme.value)


class UserSelectionStore(QObject):
    """Known local users and the selected user filter.

    The selection is either a local user id or ``ALL_USERS``. A selection
    that does not match any loaded user is reset to ``ALL_USERS``.
    """

    selected_user_changed = Signal(object)  # int: user id or ALL_USERS
    local_users_changed = Signal(object)  # tuple[LocalUser, ...]

    def __init__(self, config: ConfigManager, client: JournalClient) -> None:
        super().__init__()
        self._config = config
        self._client = client
        self._selected_user_id = ALL_USERS
        self._local_users: list[LocalUser] = []

    @property
    def selected_user_id(self) -> int:
        """Return the selected user id, or ALL_USERS."""
        return self._selected_user_id

    @property
    def local_users(self) -> tuple[LocalUser, ...]:
        """Return the loaded local users."""
        return tuple(self._local_users)

    @property
    def selected_user(self) -> LocalUser | None:
        """Return the selected user, or None for ALL_USERS or an unknown id."""
        if self._selected_user_id == ALL_USERS:
            return None
        for user in self._local_users:
            if user.id == self._selected_user_id:
                return user
        return None

    @property
    def user_count(self) -> int:
        """Return the number of loaded local users."""
        return len(self._local_users)

    def select_user(self, user_id: int) -> None:
        """Select a user (or ALL_USERS) and persist the choice.

        Raises:
            ValueError: If user_id is negative and not ALL_USERS.
        """
        if user_id != ALL_USERS and user_id < 0:
            raise ValueError(f"Invalid user id: {user_id}")
        self._config.set(KEY_SELECTED_USER, str(user_id))
        self._apply(user_id)

    def init(self) -> None:
        """Restore the saved selection, resetting unusable values."""
        raw = self._config.get(KEY_SELECTED_USER)
        parsed = parse_user_filter(raw)
        if parsed is None:
            if raw is not None:
                logger.info("Ignoring invalid saved user selection %r", raw)
                self._config.set(KEY_SELECTED_USER, str(ALL_USERS))
            parsed = ALL_USERS
        self._apply(parsed)

    async def load_users(self) -> None:
        """Fetch local users and drop a selection that no longer exists."""
        try:
            users = await self._client.get_local_users()
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to load users: %s", e)
            return

        self._local_users = list(users)
        self.local_users_changed.emit(self.local_users)

        if self._selected_user_id != ALL_USERS and not any(
            u.id == self._selected_user_id for u in users
        ):
            logger.info(
                "Selected user %d no longer exists, showing all users", self._selected_user_id
            )
            self.select_user(ALL_USERS)

    def _apply(self, user_id: int) -> None:
        changed = user_id != self._selected_user_id
        self._selected_user_id = user_id
        if changed:
            self.selected_user_changed.emit(user_id)
