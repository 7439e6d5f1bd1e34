"""Data Transfer Objects for Charge Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import date, datetime
from enum import Enum
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from src.domain.charge import Charge, ChargeStatus, PaymentMethod


class CreateChargeCommandDTO(BaseModel):
    """
    Command DTO for creating a charge

    Used as input to CreateCharge use case. Amount and due date are checked
    by the charge lifecycle rules, not here, so that violations come back as
    INVALID_AMOUNT / INVALID_DUE_DATE errors.
    """

    customer_id: int = Field(
        ...,
        description="Customer to charge"
    )

    amount: Decimal = Field(
        ...,
        description="Charge amount (must be > 0, 2 decimal places)"
    )

    description: str = Field(
        ...,
        description="Charge description"
    )

    payment_method: PaymentMethod = Field(
        ...,
        description="Payment method (credit_card, debit_card, boleto, pix)"
    )

    due_date: date = Field(
        ...,
        description="Due date (today or later)"
    )

    payment_gateway_id: Optional[int] = Field(
        default=None,
        description="Gateway the charge is routed through"
    )

    gateway_charge_id: Optional[str] = Field(
        default=None,
        description="Charge reference on the gateway (unique)"
    )

    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Initial audit metadata"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "customer_id": 42,
                "amount": "150.50",
                "description": "Monthly subscription",
                "payment_method": "pix",
                "due_date": "2024-02-10",
                "metadata": {"order_id": "A-1001"}
            }
        }


class UpdateChargeCommandDTO(BaseModel):
    """Command DTO for updating a charge; omitted fields stay unchanged"""

    charge_id: int
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    metadata: Optional[Dict[str, Any]] = None


class CancelChargeCommandDTO(BaseModel):
    charge_id: int
    reason: str = Field(..., description="Cancellation reason, kept in metadata")


class MarkChargePaidCommandDTO(BaseModel):
    charge_id: int
    paid_at: Optional[datetime] = Field(
        default=None,
        description="Settlement timestamp (defaults to now)"
    )


class RefundChargeCommandDTO(BaseModel):
    charge_id: int
    reason: str = Field(..., description="Refund reason, kept in metadata")


class ReconcileChargeCommandDTO(BaseModel):
    """
    Command DTO for applying a gateway-reported status

    Used by the gateway sync reconciler and by gateway callbacks.
    """

    charge_id: int
    reported_status: ChargeStatus
    metadata: Optional[Dict[str, Any]] = None
    reported_paid_at: Optional[datetime] = None


class ListChargesQueryDTO(BaseModel):
    statuses: List[ChargeStatus] = Field(default_factory=list)
    customer_id: Optional[int] = None
    date_from: Optional[date] = Field(
        default=None,
        description="Inclusive lower bound on creation date"
    )
    date_to: Optional[date] = Field(
        default=None,
        description="Inclusive upper bound on creation date"
    )
    overdue: bool = Field(
        default=False,
        description="Only pending charges past their due date"
    )
    limit: int = Field(default=100, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class ChargeResponseDTO(BaseModel):
    """
    Response DTO for a single charge

    Status and payment method serialize as lowercase tokens.
    """

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
    is_paid: bool = False
    is_overdue: bool = False
    can_be_cancelled: bool = False
    can_be_updated: bool = False
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_charge(cls, charge: Charge) -> "ChargeResponseDTO":
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
            is_paid=charge.is_paid(),
            is_overdue=charge.status == ChargeStatus.PENDING and charge.is_overdue(),
            can_be_cancelled=charge.can_be_cancelled(),
            can_be_updated=charge.can_be_updated(),
            created_at=charge.created_at,
            updated_at=charge.updated_at,
        )


class ChargeListResponseDTO(BaseModel):
    items: List[ChargeResponseDTO]
    total: int
    limit: int
    offset: int


class ExpireOverdueResultDTO(BaseModel):
    """Outcome of one expiry sweep"""

    as_of: date
    total_checked: int
    expired_count: int
    failed_count: int
    expired_charge_ids: List[int] = Field(default_factory=list)
    execution_time_ms: int


class SyncOutcome(str, Enum):
    SYNCED = "synced"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


class SyncChargeResultDTO(BaseModel):
    """Outcome of synchronizing one charge with its gateway"""

    charge_id: int
    outcome: SyncOutcome
    attempts: int = 0
    remote_status: Optional[ChargeStatus] = None
    charge: Optional[ChargeResponseDTO] = None


class GatewaySyncSummaryDTO(BaseModel):
    """Outcome of one gateway sync sweep"""

    total_checked: int
    synced_count: int
    unchanged_count: int
    skipped_count: int
    failed_count: int
    execution_time_ms: int
