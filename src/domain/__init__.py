from .base import BaseModel, generate_uuid, utcnow, utc_today
from .customer import Customer, CustomerStatus
from .payment_gateway import PaymentGateway
from .charge import Charge, ChargeStatus, PaymentMethod
from .charge_events import (
    ChargeEvent,
    ChargeEventType,
    ChargeSnapshot,
    ChargeCreated,
    ChargeUpdated,
    ChargePaid,
    ChargeCancelled,
    ChargeRefunded,
    ChargeExpired,
)
from .exceptions import ChargeError, InvalidChargeData, InvalidChargeTransition

__all__ = [
    "BaseModel",
    "generate_uuid",
    "utcnow",
    "utc_today",
    "Customer",
    "CustomerStatus",
    "PaymentGateway",
    "Charge",
    "ChargeStatus",
    "PaymentMethod",
    "ChargeEvent",
    "ChargeEventType",
    "ChargeSnapshot",
    "ChargeCreated",
    "ChargeUpdated",
    "ChargePaid",
    "ChargeCancelled",
    "ChargeRefunded",
    "ChargeExpired",
    "ChargeError",
    "InvalidChargeData",
    "InvalidChargeTransition",
]
