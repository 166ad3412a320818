from voltline.models.monitoring import ClientErrorLog
from voltline.models.notification import Notification, NotificationPreference

__all__ = [
    "ClientErrorLog",
    "Notification",
    "NotificationPreference",
]
