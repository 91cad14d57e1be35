"""Localized strings for notifications produced by the state layer."""

from collections.abc import Callable

from vrcjournal.models.preferences import Locale

_MESSAGES: dict[Locale, dict[str, str]] = {
    Locale.JA: {
        "common.error": "エラー",
        "error.instanceLoad": "インスタンスの読み込みに失敗しました",
        "error.openDirectory": "フォルダを開けませんでした",
        "notification.inviteOpened": "招待URLを開きました",
        "notification.userPageOpened": "ユーザーページを開きました",
    },
    Locale.EN: {
        "common.error": "Error",
        "error.instanceLoad": "Failed to load instances",
        "error.openDirectory": "Failed to open folder",
        "notification.inviteOpened": "Opened invite URL",
        "notification.userPageOpened": "Opened user page",
    },
}


class Messages:
    """Translate message keys using the current locale.

    Falls back to English, then to the key itself.
    """

    def __init__(self, locale: Callable[[], Locale]) -> None:
        """Initialize the lookup.

        Args:
            locale: Returns the locale to translate into at call time.
        """
        self._locale = locale

    def t(self, key: str) -> str:
        """Return the translation for key."""
        table = _MESSAGES.get(self._locale(), {})
        return table.get(key) or _MESSAGES[Locale.EN].get(key, key)
