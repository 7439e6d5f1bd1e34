"""Request schemas for Charges API

Pydantic models for validating incoming HTTP requests. Structural problems
(missing fields, wrong types, unknown tokens) are rejected here with 400;
business rules such as "amount > 0" or "due date not in the past" are left to
the use cases so they surface with their own error codes.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field
from src.domain.charge import ChargeStatus, PaymentMethod


class CreateChargeRequestSchema(BaseModel):
    """
    Request schema for creating a charge

    Used for POST /charges endpoint.
    """

    customer_id: int = Field(
        ...,
        gt=0,
        description="Customer to charge"
    )

    amount: Decimal = Field(
        ...,
        description="Charge amount (must be > 0, 2 decimal places)"
    )

    description: str = Field(
        ...,
        min_length=3,
        max_length=500,
        description="Charge description (3-500 characters)"
    )

    payment_method: PaymentMethod = Field(
        ...,
        description="Payment method (credit_card, debit_card, boleto, pix)"
    )

    due_date: date = Field(
        ...,
        description="Due date, today or later (YYYY-MM-DD)"
    )

    payment_gateway_id: Optional[int] = Field(
        default=None,
        description="Gateway the charge is routed through"
    )

    gateway_charge_id: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Charge reference on the gateway"
    )

    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Optional metadata for audit trail"
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


class UpdateChargeRequestSchema(BaseModel):
    """
    Request schema for updating a charge

    Used for PATCH /charges/{charge_id}. Omitted fields stay unchanged.
    """

    amount: Optional[Decimal] = Field(
        default=None,
        description="New amount (must be > 0)"
    )

    description: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=500,
        description="New description"
    )

    due_date: Optional[date] = Field(
        default=None,
        description="New due date, today or later"
    )

    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Keys merged into the charge metadata"
    )


class CancelChargeRequestSchema(BaseModel):
    reason: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Cancellation reason"
    )


class RefundChargeRequestSchema(BaseModel):
    reason: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Refund reason"
    )


class MarkChargePaidRequestSchema(BaseModel):
    paid_at: Optional[datetime] = Field(
        default=None,
        description="Settlement timestamp (defaults to now)"
    )


class ReconcileChargeRequestSchema(BaseModel):
    """
    Request schema for applying a gateway-reported status

    Used for POST /charges/{charge_id}/reconcile (gateway callbacks).
    """

    status: ChargeStatus = Field(
        ...,
        description="Status reported by the gateway"
    )

    paid_at: Optional[datetime] = Field(
        default=None,
        description="Settlement timestamp reported by the gateway"
    )

    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Keys merged into the charge metadata"
    )
