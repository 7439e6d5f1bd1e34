"""Charge Lifecycle State Machine

Pure transition rules for charges. Every plan_* function evaluates the guard
for one operation against the charge's current state and returns the field
changes to persist (keyed by Charge attribute name). Nothing here touches the
database; use cases apply the returned changes inside their transaction.

Transitions:
    create      -> PENDING
    update      PENDING | EXPIRED | FAILED          (status unchanged)
    cancel      PENDING | EXPIRED | FAILED          -> CANCELLED
    mark paid   PENDING | EXPIRED | FAILED          -> PAID   (PAID: no-op)
    refund      PAID                                -> REFUNDED
    expire      PENDING past due date               -> EXPIRED
    reconcile   any                                 -> gateway-reported status
    delete      CANCELLED | EXPIRED | FAILED        (soft delete)
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Union
from src.domain.charge import Charge, ChargeStatus
from src.domain.charge_metadata import merge_metadata
from src.domain.exceptions import InvalidChargeData, InvalidChargeTransition

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("99999999.99")

PAYABLE_STATUSES = frozenset({
    ChargeStatus.PENDING,
    ChargeStatus.EXPIRED,
    ChargeStatus.FAILED,
})

DELETABLE_STATUSES = frozenset({
    ChargeStatus.CANCELLED,
    ChargeStatus.EXPIRED,
    ChargeStatus.FAILED,
})


def validate_amount(amount: Union[Decimal, int, float, str]) -> Decimal:
    """
    Validate a charge amount

    Returns:
        Amount quantized to 2 decimal places

    Raises:
        InvalidChargeData: amount is not a positive value with at most 2 decimals
    """
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidChargeData("amount", "Amount must be a number")

    if not value.is_finite() or value <= 0:
        raise InvalidChargeData("amount", "Amount must be greater than 0")
    if value != value.quantize(CENT):
        raise InvalidChargeData("amount", "Amount must have at most 2 decimal places")
    if value > MAX_AMOUNT:
        raise InvalidChargeData("amount", f"Amount must not exceed {MAX_AMOUNT}")
    return value.quantize(CENT)


def validate_due_date(due_date: Union[date, datetime, str], today: date) -> date:
    """
    Validate a due date against the current date

    Raises:
        InvalidChargeData: not a calendar date, or strictly before today
    """
    if isinstance(due_date, datetime):
        due_date = due_date.date()
    elif isinstance(due_date, str):
        try:
            due_date = date.fromisoformat(due_date)
        except ValueError:
            raise InvalidChargeData("due_date", "Due date is not a valid date")
    elif not isinstance(due_date, date):
        raise InvalidChargeData("due_date", "Due date is not a valid date")

    if due_date < today:
        raise InvalidChargeData("due_date", "Due date cannot be in the past")
    return due_date


def validate_description(description: str) -> str:
    if description is None or not description.strip():
        raise InvalidChargeData("description", "Description cannot be empty")
    return description


def merge_supplied_metadata(
    current: Optional[Mapping[str, Any]], updates: Mapping[str, Any]
) -> Dict[str, Any]:
    """Merge caller-supplied metadata, rejecting unsupported value types"""
    try:
        return merge_metadata(current, updates)
    except TypeError as e:
        raise InvalidChargeData("metadata", str(e))


def plan_create(
    today: date,
    amount: Union[Decimal, int, float, str],
    description: str,
    due_date: Union[date, datetime, str],
    metadata: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Validate the fields of a new charge

    Returns:
        Validated field values; status is always PENDING
    """
    return {
        "amount": validate_amount(amount),
        "description": validate_description(description),
        "due_date": validate_due_date(due_date, today),
        "status": ChargeStatus.PENDING,
        "metadata_": merge_supplied_metadata(None, metadata or {}),
    }


def plan_update(
    charge: Charge,
    today: date,
    amount: Optional[Decimal] = None,
    description: Optional[str] = None,
    due_date: Optional[date] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    if not charge.can_be_updated():
        raise InvalidChargeTransition(
            "CHARGE_NOT_UPDATABLE",
            f"Charge #{charge.id} is already {charge.status.value} and cannot be modified",
        )

    changes: Dict[str, Any] = {}
    if amount is not None:
        changes["amount"] = validate_amount(amount)
    if description is not None:
        changes["description"] = validate_description(description)
    if due_date is not None:
        changes["due_date"] = validate_due_date(due_date, today)
    if metadata:
        changes["metadata_"] = merge_supplied_metadata(charge.metadata_, metadata)
    return changes


def plan_cancel(charge: Charge, reason: str, now: datetime) -> Dict[str, Any]:
    if not charge.can_be_cancelled():
        raise InvalidChargeTransition(
            "CHARGE_CANNOT_BE_CANCELLED",
            f"Charge cannot be cancelled: Charge already {charge.status.value}",
        )

    return {
        "status": ChargeStatus.CANCELLED,
        "metadata_": merge_metadata(charge.metadata_, {
            "cancellation_reason": reason,
            "cancelled_at": now,
        }),
    }


def plan_mark_paid(
    charge: Charge, now: datetime, paid_at: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Plan the transition to PAID

    Returns:
        Empty dict when the charge is already paid (idempotent replay)
    """
    if charge.status == ChargeStatus.PAID:
        return {}

    if charge.status not in PAYABLE_STATUSES:
        raise InvalidChargeTransition(
            "CHARGE_CANNOT_BE_CANCELLED",
            f"Charge cannot be cancelled: Cannot mark {charge.status.value} charge as paid",
        )

    changes: Dict[str, Any] = {"status": ChargeStatus.PAID}
    if charge.paid_at is None:
        changes["paid_at"] = paid_at or now
    return changes


def plan_refund(charge: Charge, reason: str, now: datetime) -> Dict[str, Any]:
    if charge.status != ChargeStatus.PAID:
        raise InvalidChargeTransition(
            "CHARGE_NOT_REFUNDABLE",
            "Only paid charges can be refunded",
        )

    # paid_at is kept: a refund overlays a paid charge, it does not undo it
    return {
        "status": ChargeStatus.REFUNDED,
        "metadata_": merge_metadata(charge.metadata_, {
            "refund_reason": reason,
            "refunded_at": now,
        }),
    }


def plan_reconcile(
    charge: Charge,
    reported_status: ChargeStatus,
    now: datetime,
    metadata: Optional[Mapping[str, Any]] = None,
    reported_paid_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Plan applying a gateway-reported status

    Tolerant of any current status. Replaying the same report yields no
    status change; only new metadata keys or values are merged.

    Returns:
        Changes to persist (empty when nothing differs)
    """
    changes: Dict[str, Any] = {}
    if charge.status != reported_status:
        changes["status"] = reported_status
    if reported_status == ChargeStatus.PAID and charge.paid_at is None:
        changes["paid_at"] = reported_paid_at or now
    if metadata:
        merged = merge_metadata(charge.metadata_, metadata)
        if merged != (charge.metadata_ or {}):
            changes["metadata_"] = merged
    return changes


def plan_expire(charge: Charge, today: date, now: datetime) -> Dict[str, Any]:
    if charge.status != ChargeStatus.PENDING or charge.due_date >= today:
        raise InvalidChargeTransition(
            "CHARGE_NOT_EXPIRABLE",
            f"Charge #{charge.id} is not a pending charge past its due date",
        )

    return {
        "status": ChargeStatus.EXPIRED,
        "metadata_": merge_metadata(charge.metadata_, {"expired_at": now}),
    }


def plan_soft_delete(charge: Charge, now: datetime) -> Dict[str, Any]:
    if charge.status not in DELETABLE_STATUSES:
        raise InvalidChargeTransition(
            "CHARGE_NOT_DELETABLE",
            "Only cancelled, expired or failed charges can be deleted",
        )
    return {"deleted_at": now}
