"""Delivery sink: the channel that shows immediately-actionable alerts."""

import logging
from typing import Protocol

from pydantic import BaseModel, Field

from src.domain.notification import Notification, NotificationPriority


logger = logging.getLogger(__name__)


class DeliveryResult(BaseModel):
    """Result of handing one notification to the sink."""

    notification_id: str
    success: bool = Field(..., description="Whether the sink accepted the notification")
    error: str | None = Field(None, description="Error message if delivery failed")


class DeliverySink(Protocol):
    """Receives a rendered alert. Called only after the notification is committed."""

    async def notify(self, title: str, body: str, priority: NotificationPriority) -> None: ...


class LoggingSink:
    """Default sink that writes alerts to the application log."""

    async def notify(self, title: str, body: str, priority: NotificationPriority) -> None:
        logger.info("Alert [%s] %s: %s", priority.value, title, body)


async def deliver(sink: DeliverySink, notifications: list[Notification]) -> list[DeliveryResult]:
    """Hand each notification to the sink.

    A failing sink call is logged and reported; it does not stop the
    remaining deliveries or undo the committed state.
    """
    results = []
    for notification in notifications:
        try:
            await sink.notify(notification.title, notification.message, notification.priority)
            results.append(DeliveryResult(notification_id=notification.id, success=True))
        except Exception as e:
            logger.error(
                "Delivery failed for notification %s: %s",
                notification.id,
                e,
                extra={"notification_id": notification.id, "partner_id": notification.partner_id},
            )
            results.append(DeliveryResult(notification_id=notification.id, success=False, error=str(e)))
    return results
