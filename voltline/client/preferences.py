from __future__ import annotations

from voltline.schemas.notification import NotificationOut, NotificationPreferences

DEFAULT_PREFERENCES = NotificationPreferences()

_TYPE_CATEGORIES = {
    "form_submission": "form_submissions",
    "content_published": "content_reminders",
    "reminder": "content_reminders",
    "system": "system_updates",
}


class PreferenceStore:
    """Holds the admin's notification settings.

    The store starts from the hardcoded defaults and is only ever replaced
    wholesale, either by a fetch or by a confirmed update.
    """

    def __init__(self, initial: NotificationPreferences | None = None) -> None:
        self._current = (initial or DEFAULT_PREFERENCES).model_copy(deep=True)

    @property
    def current(self) -> NotificationPreferences:
        return self._current

    def replace(self, preferences: NotificationPreferences) -> None:
        self._current = preferences.model_copy(deep=True)

    def reset(self) -> None:
        self._current = DEFAULT_PREFERENCES.model_copy(deep=True)

    def allows(self, notification: NotificationOut) -> bool:
        types = self._current.notification_types
        if notification.priority == "urgent" and types.urgent_inquiries:
            return True
        category = _TYPE_CATEGORIES.get(notification.type)
        if category is None:
            return True
        return bool(getattr(types, category))
