"""Tests for the locale, theme and user selection stores."""

import logging
from unittest.mock import AsyncMock, Mock

import pytest
from conftest import make_user
from PySide6.QtCore import QObject
from pytestqt.qtbot import QtBot

from vrcjournal.core.config import KEY_LOCALE, KEY_SELECTED_USER, KEY_THEME, ConfigManager
from vrcjournal.core.preferences import (
    THEME_PROPERTY,
    LocaleStore,
    ThemeStore,
    UserSelectionStore,
    apply_theme,
    detect_system_locale,
)
from vrcjournal.models.preferences import ALL_USERS, Locale, Theme


def _os_locale(tag: str) -> AsyncMock:
    return AsyncMock(return_value=tag)


class TestDetectSystemLocale:
    """Test mapping the OS locale."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("tag", "expected"),
        [("ja_JP", Locale.JA), ("JA", Locale.JA), ("en_US", Locale.EN), ("de_DE", Locale.EN)],
    )
    async def test_mapping(self, tag: str, expected: Locale) -> None:
        """Test that only Japanese tags map to ja."""
        assert await detect_system_locale(_os_locale(tag)) is expected

    @pytest.mark.asyncio
    async def test_query_failure_defaults_to_ja(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the fallback when the OS cannot be queried."""
        query = AsyncMock(side_effect=OSError("no locale"))
        with caplog.at_level(logging.WARNING):
            assert await detect_system_locale(query) is Locale.JA
        assert "Failed to detect system locale" in caplog.text


class TestLocaleStore:
    """Test LocaleStore."""

    @pytest.mark.asyncio
    async def test_saved_value_wins(self, config: ConfigManager) -> None:
        """Test that a valid saved locale ignores the OS."""
        config.set(KEY_LOCALE, "en")
        query = _os_locale("ja_JP")
        store = LocaleStore(config, query)

        await store.init()

        assert store.locale is Locale.EN
        query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_saved_value_uses_os(self, config: ConfigManager) -> None:
        """Test that an unknown saved value falls back to the OS locale."""
        config.set(KEY_LOCALE, "xx")
        store = LocaleStore(config, _os_locale("ja_JP"))

        await store.init()

        assert store.locale is Locale.JA
        assert config.get(KEY_LOCALE) == "ja"

    @pytest.mark.asyncio
    async def test_unset_uses_os_and_persists(
        self, config: ConfigManager, qtbot: QtBot
    ) -> None:
        """Test first run on an English system."""
        store = LocaleStore(config, _os_locale("en_GB"))

        with qtbot.waitSignal(store.locale_changed, timeout=100) as blocker:
            await store.init()

        assert blocker.args == ["en"]
        assert config.get(KEY_LOCALE) == "en"

    @pytest.mark.asyncio
    async def test_os_failure_falls_back_to_ja(self, config: ConfigManager) -> None:
        """Test init when the OS query raises."""
        store = LocaleStore(config, AsyncMock(side_effect=RuntimeError("boom")))
        await store.init()
        assert store.locale is Locale.JA
        assert config.get(KEY_LOCALE) == "ja"

    def test_set_locale_persists(self, config: ConfigManager) -> None:
        """Test that setting a locale is visible immediately and stored."""
        store = LocaleStore(config)
        store.set_locale("en")
        assert store.locale is Locale.EN
        assert config.get(KEY_LOCALE) == "en"

    def test_set_invalid_locale_raises(self, config: ConfigManager) -> None:
        """Test that unsupported languages are rejected."""
        store = LocaleStore(config)
        with pytest.raises(ValueError):
            store.set_locale("fr")
        assert config.get(KEY_LOCALE) is None

    def test_same_locale_does_not_emit(self, config: ConfigManager, qtbot: QtBot) -> None:
        """Test that re-setting the current locale is silent."""
        store = LocaleStore(config)
        with qtbot.assertNotEmitted(store.locale_changed):
            store.set_locale(Locale.JA)


class TestThemeStore:
    """Test ThemeStore."""

    def test_defaults_to_system(self, config: ConfigManager) -> None:
        """Test that an unset theme is system and sets no property."""
        root = QObject()
        store = ThemeStore(config, root)
        store.init()
        assert store.theme is Theme.SYSTEM
        assert root.property(THEME_PROPERTY) is None

    def test_saved_theme_applied(self, config: ConfigManager) -> None:
        """Test that init reflects the saved theme onto the root."""
        config.set(KEY_THEME, "cyberpunk")
        root = QObject()
        store = ThemeStore(config, root)
        store.init()
        assert store.theme is Theme.CYBERPUNK
        assert root.property(THEME_PROPERTY) == "cyberpunk"

    def test_invalid_saved_theme_is_reset(self, config: ConfigManager) -> None:
        """Test that an invalid saved theme is replaced by system."""
        config.set(KEY_THEME, "neon")
        store = ThemeStore(config, QObject())
        store.init()
        assert store.theme is Theme.SYSTEM
        assert config.get(KEY_THEME) == "system"

    def test_set_theme(self, config: ConfigManager, qtbot: QtBot) -> None:
        """Test switching themes updates root, storage and signal."""
        root = QObject()
        store = ThemeStore(config, root)

        with qtbot.waitSignal(store.theme_changed, timeout=100) as blocker:
            store.set_theme("dark")

        assert blocker.args == ["dark"]
        assert root.property(THEME_PROPERTY) == "dark"
        assert config.get(KEY_THEME) == "dark"

    def test_system_removes_property(self, config: ConfigManager) -> None:
        """Test that going back to system clears the root property."""
        root = QObject()
        store = ThemeStore(config, root)
        store.set_theme(Theme.PASTEL)
        store.set_theme(Theme.SYSTEM)
        assert root.property(THEME_PROPERTY) is None
        assert config.get(KEY_THEME) == "system"

    def test_invalid_theme_raises(self, config: ConfigManager) -> None:
        """Test that unknown themes are rejected."""
        with pytest.raises(ValueError):
            ThemeStore(config, QObject()).set_theme("neon")

    def test_apply_theme_explicit_root(self) -> None:
        """Test the free function on a given root."""
        root = QObject()
        apply_theme(Theme.AURORA, root)
        assert root.property(THEME_PROPERTY) == "aurora"


class TestUserSelectionStore:
    """Test UserSelectionStore."""

    def test_defaults_to_all_users(self, config: ConfigManager, mock_client: Mock) -> None:
        """Test the initial selection."""
        store = UserSelectionStore(config, mock_client)
        store.init()
        assert store.selected_user_id == ALL_USERS
        assert store.selected_user is None

    def test_restores_saved_selection(self, config: ConfigManager, mock_client: Mock) -> None:
        """Test that a saved id is restored."""
        config.set(KEY_SELECTED_USER, "2")
        store = UserSelectionStore(config, mock_client)
        store.init()
        assert store.selected_user_id == 2

    @pytest.mark.parametrize("raw", ["abc", "-5"])
    def test_invalid_saved_selection(
        self, config: ConfigManager, mock_client: Mock, raw: str
    ) -> None:
        """Test that unusable saved values reset to all users."""
        config.set(KEY_SELECTED_USER, raw)
        store = UserSelectionStore(config, mock_client)
        store.init()
        assert store.selected_user_id == ALL_USERS
        assert config.get(KEY_SELECTED_USER) == "-1"

    def test_select_user(
        self, config: ConfigManager, mock_client: Mock, qtbot: QtBot
    ) -> None:
        """Test that selection is stored and announced."""
        store = UserSelectionStore(config, mock_client)
        with qtbot.waitSignal(store.selected_user_changed, timeout=100) as blocker:
            store.select_user(7)
        assert blocker.args == [7]
        assert store.selected_user_id == 7
        assert config.get(KEY_SELECTED_USER) == "7"

    def test_large_user_id_is_not_truncated(
        self, config: ConfigManager, mock_client: Mock, qtbot: QtBot
    ) -> None:
        """Test that ids beyond 32 bits survive the change signal."""
        store = UserSelectionStore(config, mock_client)
        big_id = 2**31 + 5
        with qtbot.waitSignal(store.selected_user_changed, timeout=100) as blocker:
            store.select_user(big_id)
        assert blocker.args == [big_id]
        assert config.get(KEY_SELECTED_USER) == str(big_id)

    def test_negative_selection_raises(self, config: ConfigManager, mock_client: Mock) -> None:
        """Test that negative ids other than ALL_USERS are rejected."""
        store = UserSelectionStore(config, mock_client)
        with pytest.raises(ValueError):
            store.select_user(-2)
        assert store.selected_user_id == ALL_USERS

    @pytest.mark.asyncio
    async def test_load_users(self, config: ConfigManager, mock_client: Mock) -> None:
        """Test that users load and a valid selection survives."""
        users = [make_user(1, "Alice"), make_user(2, "Bob")]
        mock_client.get_local_users.return_value = users
        store = UserSelectionStore(config, mock_client)
        store.select_user(2)

        await store.load_users()

        assert store.local_users == tuple(users)
        assert store.user_count == 2
        assert store.selected_user == users[1]

    @pytest.mark.asyncio
    async def test_missing_selection_resets(
        self, config: ConfigManager, mock_client: Mock
    ) -> None:
        """Test that selecting a user that is not in the list resets it."""
        mock_client.get_local_users.return_value = [make_user(1)]
        store = UserSelectionStore(config, mock_client)
        store.select_user(9)

        await store.load_users()

        assert store.selected_user_id == ALL_USERS
        assert config.get(KEY_SELECTED_USER) == "-1"

    @pytest.mark.asyncio
    async def test_load_failure_keeps_state(
        self, config: ConfigManager, mock_client: Mock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a failed fetch leaves users and selection alone."""
        mock_client.get_local_users.return_value = [make_user(1)]
        store = UserSelectionStore(config, mock_client)
        await store.load_users()
        store.select_user(1)

        mock_client.get_local_users.side_effect = ConnectionError("down")
        with caplog.at_level(logging.ERROR):
            await store.load_users()

        assert store.user_count == 1
        assert store.selected_user_id == 1
        assert "Failed to load users" in caplog.text
