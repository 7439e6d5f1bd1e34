from .unit_of_work import SqlAlchemyUnitOfWork
from .event_publisher import InProcessEventPublisher
from .payment_gateway_client import (
    HttpPaymentGatewayClient,
    UnconfiguredPaymentGatewayClient,
    create_payment_gateway_client,
    map_remote_status,
)
from .notification_service import (
    LoggingNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
    register_charge_notifications,
)

__all__ = [
    "SqlAlchemyUnitOfWork",
    "InProcessEventPublisher",
    "HttpPaymentGatewayClient",
    "UnconfiguredPaymentGatewayClient",
    "create_payment_gateway_client",
    "map_remote_status",
    "LoggingNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
    "register_charge_notifications",
]
