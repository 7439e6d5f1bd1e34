"""Notification Service Implementations

Provides concrete implementations for notifying customers about charges, and
the wiring that attaches them to the event publisher.
"""

import logging
from typing import Optional
import httpx
from src.app.services.event_publisher import EventPublisher
from src.app.services.notification_service import NotificationService
from src.domain.charge_events import ChargeEvent, ChargeCreated, ChargePaid

logger = logging.getLogger(__name__)

NOTIFICATION_KINDS = {
    "charge.created": "charge_notification",
    "charge.paid": "payment_confirmation",
}


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs notifications

    Useful for development and testing, or as a fallback.
    """

    async def send_charge_notification(self, event: ChargeEvent) -> bool:
        """
        Log charge notification

        Args:
            event: ChargeEvent to notify about

        Returns:
            Always True (logging never fails)
        """
        kind = NOTIFICATION_KINDS.get(event.event_type.value, event.event_type.value)
        logger.info(
            f"[{kind.upper()}] Charge: {event.charge.id}, "
            f"Customer: {event.charge.customer_id}, "
            f"Amount: {event.charge.amount}, "
            f"Status: {event.charge.status.value}, "
            f"Due: {event.charge.due_date.isoformat()}"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that sends notifications via HTTP webhook

    Sends JSON payload to configured webhook URL.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST notifications to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def send_charge_notification(self, event: ChargeEvent) -> bool:
        """
        Send charge notification via webhook

        Args:
            event: ChargeEvent to notify about

        Returns:
            True if webhook call succeeded, False otherwise
        """
        payload = {
            "type": NOTIFICATION_KINDS.get(event.event_type.value, event.event_type.value),
            "event": event.model_dump(mode="json"),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(
                    f"Webhook notification sent for charge {event.charge.id} to {self.webhook_url}"
                )
                return True
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to send webhook notification for charge {event.charge.id}: {e}"
            )
            return False


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Useful for sending to multiple channels (e.g., log + webhook).
    """

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def send_charge_notification(self, event: ChargeEvent) -> bool:
        """
        Send notification to all configured services

        Returns:
            True if at least one service succeeded, False otherwise
        """
        success = False
        for service in self.services:
            try:
                if await service.send_charge_notification(event):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     service with logging + webhook. Otherwise, just logging.

    Returns:
        Configured NotificationService
    """
    services: list[NotificationService] = [LoggingNotificationService()]

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)


def register_charge_notifications(
    publisher: EventPublisher, service: NotificationService
) -> None:
    """
    Subscribe the notification service to the events customers hear about

    - ChargeCreated -> charge notification
    - ChargePaid    -> payment confirmation
    """
    publisher.subscribe(ChargeCreated, service.send_charge_notification)
    publisher.subscribe(ChargePaid, service.send_charge_notification)
