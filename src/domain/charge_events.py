"""Charge Domain Events

Published after a charge transition commits. Each event carries an immutable
snapshot of the charge as it was right after the transition.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field
from src.domain.base import generate_uuid, utcnow
from src.domain.charge import Charge, ChargeStatus, PaymentMethod


class ChargeEventType(str, Enum):
    """All charge event types"""
    CREATED = "charge.created"
    UPDATED = "charge.updated"
    PAID = "charge.paid"
    CANCELLED = "charge.cancelled"
    REFUNDED = "charge.refunded"
    EXPIRED = "charge.expired"


class ChargeSnapshot(BaseModel):
    """Frozen copy of a charge's persisted state"""

    model_config = ConfigDict(frozen=True)

    id: int
    customer_id: int
    payment_gateway_id: Optional[int] = None
    gateway_charge_id: Optional[str] = None
    amount: Decimal
    description: str
    payment_method: PaymentMethod
    status: ChargeStatus
    due_date: date
    paid_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_charge(cls, charge: Charge) -> "ChargeSnapshot":
        return cls(
            id=charge.id,
            customer_id=charge.customer_id,
            payment_gateway_id=charge.payment_gateway_id,
            gateway_charge_id=charge.gateway_charge_id,
            amount=charge.amount,
            description=charge.description,
            payment_method=charge.payment_method,
            status=charge.status,
            due_date=charge.due_date,
            paid_at=charge.paid_at,
            metadata=dict(charge.metadata_ or {}),
            version=charge.version,
            created_at=charge.created_at,
            updated_at=charge.updated_at,
        )


class ChargeEvent(BaseModel):
    """Base event schema - all charge events inherit from this"""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=generate_uuid)
    event_type: ChargeEventType
    occurred_at: datetime = Field(default_factory=utcnow)
    charge: ChargeSnapshot

    @classmethod
    def for_charge(cls, charge: Charge) -> "ChargeEvent":
        return cls(charge=ChargeSnapshot.from_charge(charge))


class ChargeCreated(ChargeEvent):
    event_type: ChargeEventType = ChargeEventType.CREATED


class ChargeUpdated(ChargeEvent):
    event_type: ChargeEventType = ChargeEventType.UPDATED


class ChargePaid(ChargeEvent):
    event_type: ChargeEventType = ChargeEventType.PAID


class ChargeCancelled(ChargeEvent):
    event_type: ChargeEventType = ChargeEventType.CANCELLED


class ChargeRefunded(ChargeEvent):
    event_type: ChargeEventType = ChargeEventType.REFUNDED


class ChargeExpired(ChargeEvent):
    event_type: ChargeEventType = ChargeEventType.EXPIRED


# Event announcing that a charge reached a status through reconciliation
STATUS_EVENTS = {
    ChargeStatus.PAID: ChargePaid,
    ChargeStatus.CANCELLED: ChargeCancelled,
    ChargeStatus.REFUNDED: ChargeRefunded,
    ChargeStatus.EXPIRED: ChargeExpired,
}


def event_for_status(status: ChargeStatus) -> type:
    return STATUS_EVENTS.get(status, ChargeUpdated)
