"""
Conversion of dashboard form state into typed upstream payloads.

The dashboard forms submit their checkbox state keyed by element id,
e.g. ``{"channel-email": true, "cat-sports": "on"}``. One generic helper
extracts the checked members of any enum from such a mapping.
"""

from enum import Enum
from typing import Any, List, Mapping, Type, TypeVar

from admin_dashboard.dashboard.models import (
    Category,
    Channel,
    NotificationRequest,
    UserPreference,
)

E = TypeVar("E", bound=Enum)

CHANNEL_PREFIX = "channel"
CATEGORY_PREFIX = "cat"
NOTIFICATION_CHANNEL_PREFIX = "notif-channel"

# Channels offered by the notification form
NOTIFICATION_CHANNELS = (Channel.EMAIL, Channel.WHATSAPP, Channel.APP)

_CHECKED_STRINGS = {"on", "true", "1", "yes", "checked"}


def is_checked(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _CHECKED_STRINGS
    if isinstance(value, (int, float)):
        return value != 0
    return False


def field_id(prefix: str, member: Enum) -> str:
    return f"{prefix}-{member.name.lower()}"


def checked_values(
    form: Mapping[str, Any], enum_cls: Type[E], prefix: str, members=None
) -> List[E]:
    """Return the enum members whose checkbox is checked, in declaration order."""
    candidates = members if members is not None else list(enum_cls)
    return [m for m in candidates if is_checked(form.get(field_id(prefix, m)))]


def _text(form: Mapping[str, Any], key: str) -> str:
    value = form.get(key)
    return "" if value is None else str(value).strip()


def _optional_text(form: Mapping[str, Any], key: str):
    return _text(form, key) or None


def preference_from_form(form: Mapping[str, Any], user_id: str = None) -> UserPreference:
    """Build a preference from the preference form; ``user_id`` overrides the form field."""
    return UserPreference(
        userId=user_id if user_id is not None else _text(form, "userId"),
        email=_optional_text(form, "email"),
        phoneNumber=_optional_text(form, "phoneNumber"),
        enabledChannels=checked_values(form, Channel, CHANNEL_PREFIX),
        preferences=checked_values(form, Category, CATEGORY_PREFIX),
    )


def notification_from_form(form: Mapping[str, Any]) -> NotificationRequest:
    return NotificationRequest(
        userId=_text(form, "userId"),
        subject=_text(form, "subject"),
        message=_text(form, "message"),
        channels=checked_values(
            form, Channel, NOTIFICATION_CHANNEL_PREFIX, members=NOTIFICATION_CHANNELS
        ),
    )
