"""Notification domain exports."""

from .delivery import NotificationSink, NullSink  # noqa: F401
from .models import Notification, NotificationCategory, NotificationEvent  # noqa: F401
from .service import NotificationStore  # noqa: F401
