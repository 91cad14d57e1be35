"""Data models for instances, local users and preferences."""

from vrcjournal.models.instance import Instance, InstanceStatus
from vrcjournal.models.preferences import ALL_USERS, Locale, Theme, parse_user_filter
from vrcjournal.models.user import LocalUser

__all__ = [
    "ALL_USERS",
    "Instance",
    "InstanceStatus",
    "Locale",
    "LocalUser",
    "Theme",
    "parse_user_filter",
]
