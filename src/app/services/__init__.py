from .unit_of_work import UnitOfWork
from .event_publisher import EventPublisher, EventObserver
from .customer_directory import CustomerDirectory, CustomerEligibility
from .payment_gateway_client import (
    PaymentGatewayClient,
    RemoteChargeStatus,
    GatewayError,
    GatewayTransientError,
    GatewayDefinitiveError,
)
from .notification_service import NotificationService

__all__ = [
    "UnitOfWork",
    "EventPublisher",
    "EventObserver",
    "CustomerDirectory",
    "CustomerEligibility",
    "PaymentGatewayClient",
    "RemoteChargeStatus",
    "GatewayError",
    "GatewayTransientError",
    "GatewayDefinitiveError",
    "NotificationService",
]
