"""Unit tests for the charge lifecycle state machine

Tests cover:
- Field validation (amount, due date, description, metadata)
- Guards for update, cancel, mark paid, refund, expire and delete
- Reconciliation diffing and idempotency
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from src.domain.charge import ChargeStatus
from src.domain.charge_lifecycle import (
    validate_amount,
    validate_due_date,
    plan_create,
    plan_update,
    plan_cancel,
    plan_mark_paid,
    plan_refund,
    plan_reconcile,
    plan_expire,
    plan_soft_delete,
)
from src.domain.exceptions import InvalidChargeData, InvalidChargeTransition


class TestValidation:
    @pytest.mark.parametrize("amount", ["0", "-1", "0.00", "-0.01"])
    def test_non_positive_amount_is_rejected(self, amount):
        with pytest.raises(InvalidChargeData) as exc:
            validate_amount(Decimal(amount))
        assert exc.value.code == "INVALID_AMOUNT"

    def test_amount_with_three_decimals_is_rejected(self):
        with pytest.raises(InvalidChargeData):
            validate_amount(Decimal("10.005"))

    def test_amount_not_a_number_is_rejected(self):
        with pytest.raises(InvalidChargeData):
            validate_amount("abc")

    def test_amount_is_quantized(self):
        assert validate_amount(10) == Decimal("10.00")
        assert str(validate_amount("150.5")) == "150.50"

    def test_due_date_today_is_accepted(self, today):
        assert validate_due_date(today, today) == today

    def test_due_date_yesterday_is_rejected(self, today):
        with pytest.raises(InvalidChargeData) as exc:
            validate_due_date(today - timedelta(days=1), today)
        assert exc.value.code == "INVALID_DUE_DATE"

    def test_due_date_string_must_be_a_date(self, today):
        with pytest.raises(InvalidChargeData):
            validate_due_date("2024-02-30", today)

    def test_plan_create_builds_pending_fields(self, today):
        fields = plan_create(
            today,
            amount=Decimal("150.50"),
            description="Monthly subscription",
            due_date=today + timedelta(days=7),
            metadata={"order_id": "A-1"},
        )
        assert fields["status"] == ChargeStatus.PENDING
        assert fields["amount"] == Decimal("150.50")
        assert fields["metadata_"] == {"order_id": "A-1"}

    def test_plan_create_rejects_blank_description(self, today):
        with pytest.raises(InvalidChargeData) as exc:
            plan_create(today, Decimal("1.00"), "   ", today)
        assert exc.value.code == "INVALID_DESCRIPTION"

    def test_plan_create_rejects_unsupported_metadata(self, today):
        with pytest.raises(InvalidChargeData) as exc:
            plan_create(today, Decimal("1.00"), "abc", today, metadata={"x": object()})
        assert exc.value.code == "INVALID_METADATA"


class TestPlanUpdate:
    def test_supplied_fields_only(self, make_charge, today):
        changes = plan_update(make_charge(), today, amount=Decimal("99.90"))
        assert changes == {"amount": Decimal("99.90")}

    def test_metadata_is_merged(self, make_charge, today):
        changes = plan_update(make_charge(), today, metadata={"note": "x"})
        assert changes["metadata_"] == {"order_id": "A-1001", "note": "x"}

    def test_nothing_supplied_plans_nothing(self, make_charge, today):
        assert plan_update(make_charge(), today) == {}

    @pytest.mark.parametrize(
        "status", [ChargeStatus.PAID, ChargeStatus.CANCELLED, ChargeStatus.REFUNDED]
    )
    def test_locked_charge_cannot_be_updated(self, make_charge, today, status):
        with pytest.raises(InvalidChargeTransition) as exc:
            plan_update(make_charge(status=status), today, amount=Decimal("1.00"))
        assert exc.value.code == "CHARGE_NOT_UPDATABLE"

    @pytest.mark.parametrize("status", [ChargeStatus.EXPIRED, ChargeStatus.FAILED])
    def test_expired_and_failed_can_be_updated(self, make_charge, today, status):
        changes = plan_update(make_charge(status=status), today, description="new")
        assert changes == {"description": "new"}

    def test_invalid_amount_rejected_on_update(self, make_charge, today):
        with pytest.raises(InvalidChargeData):
            plan_update(make_charge(), today, amount=Decimal("0"))


class TestPlanCancel:
    def test_cancel_records_reason_and_keeps_prior_keys(self, make_charge, now):
        changes = plan_cancel(make_charge(), "x", now)
        assert changes["status"] == ChargeStatus.CANCELLED
        assert changes["metadata_"]["cancellation_reason"] == "x"
        assert changes["metadata_"]["cancelled_at"] == now.isoformat()
        assert changes["metadata_"]["order_id"] == "A-1001"

    def test_paid_charge_cannot_be_cancelled(self, make_charge, now):
        with pytest.raises(InvalidChargeTransition) as exc:
            plan_cancel(make_charge(status=ChargeStatus.PAID), "x", now)
        assert exc.value.code == "CHARGE_CANNOT_BE_CANCELLED"
        assert "paid" in exc.value.message


class TestPlanMarkPaid:
    def test_pending_becomes_paid_with_timestamp(self, make_charge, now):
        changes = plan_mark_paid(make_charge(), now)
        assert changes == {"status": ChargeStatus.PAID, "paid_at": now}

    def test_explicit_paid_at_is_used(self, make_charge, now):
        paid_at = datetime(2024, 1, 31, 9, 0)
        assert plan_mark_paid(make_charge(), now, paid_at)["paid_at"] == paid_at

    def test_already_paid_is_a_no_op(self, make_charge, now):
        charge = make_charge(status=ChargeStatus.PAID, paid_at=now - timedelta(days=1))
        assert plan_mark_paid(charge, now) == {}

    @pytest.mark.parametrize("status", [ChargeStatus.EXPIRED, ChargeStatus.FAILED])
    def test_expired_and_failed_can_be_paid(self, make_charge, now, status):
        assert plan_mark_paid(make_charge(status=status), now)["status"] == ChargeStatus.PAID

    @pytest.mark.parametrize("status", [ChargeStatus.CANCELLED, ChargeStatus.REFUNDED])
    def test_closed_charge_cannot_be_paid(self, make_charge, now, status):
        with pytest.raises(InvalidChargeTransition) as exc:
            plan_mark_paid(make_charge(status=status), now)
        assert exc.value.code == "CHARGE_CANNOT_BE_CANCELLED"

    def test_existing_paid_at_is_never_overwritten(self, make_charge, now):
        first = now - timedelta(days=3)
        charge = make_charge(status=ChargeStatus.FAILED, paid_at=first)
        assert "paid_at" not in plan_mark_paid(charge, now)


class TestPlanRefund:
    def test_paid_becomes_refunded_keeping_paid_at(self, make_charge, now):
        charge = make_charge(status=ChargeStatus.PAID, paid_at=now)
        changes = plan_refund(charge, "customer request", now)
        assert changes["status"] == ChargeStatus.REFUNDED
        assert "paid_at" not in changes
        assert changes["metadata_"]["refund_reason"] == "customer request"

    def test_pending_charge_cannot_be_refunded(self, make_charge, now):
        with pytest.raises(InvalidChargeTransition) as exc:
            plan_refund(make_charge(), "x", now)
        assert exc.value.code == "CHARGE_NOT_REFUNDABLE"
        assert exc.value.message == "Only paid charges can be refunded"


class TestPlanReconcile:
    def test_reported_paid_sets_status_and_paid_at(self, make_charge, now):
        changes = plan_reconcile(make_charge(), ChargeStatus.PAID, now)
        assert changes == {"status": ChargeStatus.PAID, "paid_at": now}

    def test_same_report_twice_plans_nothing(self, make_charge, now):
        charge = make_charge(status=ChargeStatus.PAID, paid_at=now)
        assert plan_reconcile(charge, ChargeStatus.PAID, now) == {}

    def test_replay_only_merges_new_metadata(self, make_charge, now):
        charge = make_charge(status=ChargeStatus.PAID, paid_at=now)
        changes = plan_reconcile(charge, ChargeStatus.PAID, now, metadata={"synced_at": now})
        assert set(changes) == {"metadata_"}

    def test_any_status_is_accepted(self, make_charge, now):
        charge = make_charge(status=ChargeStatus.CANCELLED)
        assert plan_reconcile(charge, ChargeStatus.FAILED, now)["status"] == ChargeStatus.FAILED

    def test_paid_at_is_never_cleared(self, make_charge, now):
        charge = make_charge(status=ChargeStatus.PAID, paid_at=now)
        changes = plan_reconcile(charge, ChargeStatus.REFUNDED, now)
        assert "paid_at" not in changes


class TestPlanExpire:
    def test_overdue_pending_charge_expires(self, make_charge, today, now):
        charge = make_charge(due_date=today - timedelta(days=1))
        changes = plan_expire(charge, today, now)
        assert changes["status"] == ChargeStatus.EXPIRED
        assert changes["metadata_"]["expired_at"] == now.isoformat()

    def test_charge_due_today_does_not_expire(self, make_charge, today, now):
        with pytest.raises(InvalidChargeTransition) as exc:
            plan_expire(make_charge(due_date=today), today, now)
        assert exc.value.code == "CHARGE_NOT_EXPIRABLE"

    def test_paid_charge_does_not_expire(self, make_charge, today, now):
        charge = make_charge(status=ChargeStatus.PAID, due_date=today - timedelta(days=5))
        with pytest.raises(InvalidChargeTransition):
            plan_expire(charge, today, now)


class TestPlanSoftDelete:
    @pytest.mark.parametrize(
        "status", [ChargeStatus.CANCELLED, ChargeStatus.EXPIRED, ChargeStatus.FAILED]
    )
    def test_closed_unsettled_charge_can_be_deleted(self, make_charge, now, status):
        assert plan_soft_delete(make_charge(status=status), now) == {"deleted_at": now}

    @pytest.mark.parametrize(
        "status", [ChargeStatus.PENDING, ChargeStatus.PAID, ChargeStatus.REFUNDED]
    )
    def test_other_statuses_cannot_be_deleted(self, make_charge, now, status):
        with pytest.raises(InvalidChargeTransition) as exc:
            plan_soft_delete(make_charge(status=status), now)
        assert exc.value.code == "CHARGE_NOT_DELETABLE"
