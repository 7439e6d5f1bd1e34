"""Notification Service Interface

Defines the contract for notifying customers about charge events.
"""

from abc import ABC, abstractmethod
from src.domain.charge_events import ChargeEvent


class NotificationService(ABC):
    """
    Abstract notification service for charge events

    Implementations can send notifications via:
    - Webhook (HTTP POST)
    - Email
    - SMS
    - etc.
    """

    @abstractmethod
    async def send_charge_notification(self, event: ChargeEvent) -> bool:
        """
        Send notification for a committed charge event

        Args:
            event: ChargeEvent to notify about

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass
