"""Notification hook called by order costing after commit."""

from .ports import (
    NotificationPort,
    LoggingNotificationAdapter,
    OrderCreatedEvent,
    get_notifier,
    set_notifier,
)

__all__ = [
    "NotificationPort",
    "LoggingNotificationAdapter",
    "OrderCreatedEvent",
    "get_notifier",
    "set_notifier",
]
