"""Charge Domain Entity

A monetary obligation owed by a customer, tracked through a fixed lifecycle.
Status changes go through the charge lifecycle use cases only; see
src/domain/charge_lifecycle.py for the transition rules.
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
)
from src.domain.base import BaseModel, IdType, utcnow, utc_today


class ChargeStatus(str, Enum):
    """Charge status types"""
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    EXPIRED = "expired"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    """Supported payment methods"""
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BOLETO = "boleto"
    PIX = "pix"


# Statuses that block Update and Cancel
LOCKED_STATUSES = frozenset({
    ChargeStatus.PAID,
    ChargeStatus.CANCELLED,
    ChargeStatus.REFUNDED,
})


def _token_enum(enum_cls, name: str) -> SAEnum:
    # Persist the lowercase value, not the member name
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        values_callable=lambda enum: [member.value for member in enum],
    )


class Charge(BaseModel, table=True):
    """
    Charge - Amount billed to a customer

    Domain Rules:
    - amount > 0 (2 decimal places)
    - customer_id and payment_method are immutable after creation
    - gateway_charge_id is globally unique when set
    - paid_at is set exactly once, when the charge first becomes paid,
      and is kept on refund
    - metadata is an audit trail: merged on every transition, never replaced
    - version increments on every committed write (optimistic concurrency)
    - Soft-deleted charges (deleted_at set) are invisible to every query
    """

    __tablename__ = "charges"
    __table_args__ = (
        CheckConstraint('amount > 0', name='charge_amount_positive'),
        Index('ix_charges_customer_status', 'customer_id', 'status'),
        Index('ix_charges_status', 'status'),
        Index('ix_charges_due_date', 'due_date'),
        Index('ix_charges_created_at', 'created_at'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique charge identifier (auto-increment)"
    )

    customer_id: int = Field(
        sa_column=Column(IdType, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        description="Customer being charged"
    )

    payment_gateway_id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, ForeignKey("payment_gateways.id"), nullable=True),
        description="Gateway the charge is routed through"
    )

    gateway_charge_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, unique=True, index=True),
        description="Charge reference on the external gateway (unique)"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(10, 2), nullable=False),
        description="Charge amount (must be > 0, precision: 10,2)"
    )

    description: str = Field(
        sa_column=Column(String(500), nullable=False),
        description="Charge description"
    )

    payment_method: PaymentMethod = Field(
        sa_column=Column(_token_enum(PaymentMethod, "payment_method"), nullable=False),
        description="Payment method (credit_card, debit_card, boleto, pix)"
    )

    status: ChargeStatus = Field(
        default=ChargeStatus.PENDING,
        sa_column=Column(_token_enum(ChargeStatus, "charge_status"), nullable=False),
        description="Charge status (pending, paid, cancelled, refunded, expired, failed)"
    )

    due_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Due date (no time component)"
    )

    paid_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="When the charge was first paid"
    )

    metadata_: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column("metadata", JSON, nullable=True),
        description="Audit trail (cancellation/refund reasons, gateway sync markers)"
    )

    version: int = Field(
        default=1,
        sa_column=Column(Integer, nullable=False, default=1),
        description="Row version for optimistic concurrency control"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Charge creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Last update timestamp"
    )

    deleted_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="Soft deletion timestamp"
    )

    def is_paid(self) -> bool:
        return self.status == ChargeStatus.PAID

    def is_overdue(self, today: Optional[date] = None) -> bool:
        today = today or utc_today()
        return self.due_date < today and not self.is_paid()

    def can_be_cancelled(self) -> bool:
        return self.status not in LOCKED_STATUSES

    def can_be_updated(self) -> bool:
        return self.status not in LOCKED_STATUSES

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "customer_id": 42,
                "payment_gateway_id": None,
                "gateway_charge_id": "ch_9f8e7d6c",
                "amount": "150.50",
                "description": "Monthly subscription",
                "payment_method": "pix",
                "status": "pending",
                "due_date": "2024-02-10",
                "paid_at": None,
                "metadata": {"order_id": "A-1001"},
                "version": 1,
                "created_at": "2024-02-01T00:00:00Z",
                "updated_at": "2024-02-01T00:00:00Z"
            }
        }
