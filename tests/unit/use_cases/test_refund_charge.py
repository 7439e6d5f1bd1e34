"""Unit tests for RefundCharge use case"""

import pytest

from src.app.use_cases.charges.refund_charge import RefundCharge
from src.app.use_cases.charges.dtos import RefundChargeCommandDTO
from src.domain.charge import ChargeStatus
from src.domain.charge_events import ChargeRefunded


@pytest.fixture
def refund_use_case(mock_uow, mock_charge_repo, mock_publisher, clock):
    return RefundCharge(mock_uow, mock_charge_repo, mock_publisher, clock=clock)


@pytest.mark.asyncio
class TestRefundCharge:

    async def test_paid_charge_is_refunded(
        self, refund_use_case, mock_charge_repo, mock_uow, mock_publisher, make_charge, apply_to, now
    ):
        charge = make_charge(status=ChargeStatus.PAID, paid_at=now)
        mock_charge_repo.get_by_id.return_value = charge
        mock_charge_repo.apply_changes.side_effect = apply_to(charge)

        result = await refund_use_case.execute(
            RefundChargeCommandDTO(charge_id=1, reason="customer request")
        )

        assert result.is_ok()
        assert result.value.status == ChargeStatus.REFUNDED
        assert result.value.paid_at == now
        assert result.value.metadata["refund_reason"] == "customer request"
        mock_uow.commit.assert_awaited_once()
        assert isinstance(mock_publisher.publish.await_args.args[0], ChargeRefunded)

    async def test_pending_charge_cannot_be_refunded(
        self, refund_use_case, mock_charge_repo, mock_publisher, make_charge
    ):
        mock_charge_repo.get_by_id.return_value = make_charge()

        result = await refund_use_case.execute(RefundChargeCommandDTO(charge_id=1, reason="x"))

        assert result.is_err()
        assert result.error.code == "CHARGE_NOT_REFUNDABLE"
        assert result.error.message == "Only paid charges can be refunded"
        mock_charge_repo.apply_changes.assert_not_awaited()
        mock_publisher.publish.assert_not_awaited()

    async def test_refund_twice_fails(self, refund_use_case, mock_charge_repo, make_charge):
        mock_charge_repo.get_by_id.return_value = make_charge(status=ChargeStatus.REFUNDED)

        result = await refund_use_case.execute(RefundChargeCommandDTO(charge_id=1, reason="x"))

        assert result.is_err()
        assert result.error.code == "CHARGE_NOT_REFUNDABLE"
