"""Client state layer.

This package holds the process-wide state shown by the views and keeps it
in sync with the backend's push events.

Classes:
    AppContext: Creates and owns every state object.
    BackendEventBridge: Subscribes to backend push events.
    ConfigManager: QSettings wrapper for preferences.
    Controller: Fire-and-forget backend actions.
    InstanceCache: Instance list kept live by events.
    NotificationQueue: Transient user-facing messages.
    ReadinessGate: One-shot backend readiness latch.
    LocaleStore, ThemeStore, UserSelectionStore: Preference stores.
"""

from vrcjournal.core.bridge import BackendEventBridge, EventHandlers, Subscription
from vrcjournal.core.config import ConfigManager
from vrcjournal.core.context import AppContext
from vrcjournal.core.controller import Controller
from vrcjournal.core.instances import InstanceCache
from vrcjournal.core.messages import Messages
from vrcjournal.core.notifications import Notification, NotificationKind, NotificationQueue
from vrcjournal.core.preferences import LocaleStore, ThemeStore, UserSelectionStore
from vrcjournal.core.readiness import ReadinessGate

__all__ = [
    "AppContext",
    "BackendEventBridge",
    "ConfigManager",
    "Controller",
    "EventHandlers",
    "InstanceCache",
    "LocaleStore",
    "Messages",
    "Notification",
    "NotificationKind",
    "NotificationQueue",
    "ReadinessGate",
    "Subscription",
    "ThemeStore",
    "UserSelectionStore",
]
