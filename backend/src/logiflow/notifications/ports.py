"""Port interface for order notifications (Hexagonal Architecture).

Delivery (queue, outbox, e-mail, push) lives outside this service. The order
service only calls the port after its transaction has committed.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderCreatedEvent:
    """Payload handed to the notification port when an order is created."""

    order_id: UUID
    order_number: str
    customer_id: UUID
    scheduled_date: date
    line_count: int
    total: Decimal


class NotificationPort(ABC):
    """Port interface for notification delivery.

    Implementations must not raise for delivery problems they can handle
    themselves; anything they do raise is logged by the caller and ignored.
    """

    @abstractmethod
    def order_created(self, event: OrderCreatedEvent) -> None:
        """Announce a newly created order.

        Args:
            event: Order summary
        """
        pass


class LoggingNotificationAdapter(NotificationPort):
    """Default adapter: records the event in the application log."""

    def order_created(self, event: OrderCreatedEvent) -> None:
        logger.info(
            f"Order {event.order_number} created with {event.line_count} activities "
            f"(total {event.total})",
            extra={"order_id": event.order_id, "customer_id": event.customer_id},
        )


_notifier: NotificationPort = LoggingNotificationAdapter()


def get_notifier() -> NotificationPort:
    """FastAPI dependency returning the configured notification port."""
    return _notifier


def set_notifier(notifier: NotificationPort) -> None:
    """Replace the notification port (e.g. with a queue-backed adapter)."""
    global _notifier
    _notifier = notifier
