"""Unit tests for CancelCharge use case"""

import pytest

from src.app.repositories.charge_repository import StaleChargeError
from src.app.use_cases.charges.cancel_charge import CancelCharge
from src.app.use_cases.charges.dtos import CancelChargeCommandDTO
from src.domain.charge import ChargeStatus
from src.domain.charge_events import ChargeCancelled


@pytest.fixture
def cancel_use_case(mock_uow, mock_charge_repo, mock_publisher, clock):
    return CancelCharge(mock_uow, mock_charge_repo, mock_publisher, clock=clock)


@pytest.mark.asyncio
class TestCancelCharge:

    async def test_cancel_pending_charge(
        self, cancel_use_case, mock_charge_repo, mock_uow, mock_publisher, make_charge, apply_to, now
    ):
        """
        Given: A pending charge with existing metadata
        When: It is cancelled with reason "x"
        Then: Status is CANCELLED, reason recorded, prior keys preserved
        """
        charge = make_charge()
        mock_charge_repo.get_by_id.return_value = charge
        mock_charge_repo.apply_changes.side_effect = apply_to(charge)

        result = await cancel_use_case.execute(CancelChargeCommandDTO(charge_id=1, reason="x"))

        assert result.is_ok()
        assert result.value.status == ChargeStatus.CANCELLED
        assert result.value.metadata["cancellation_reason"] == "x"
        assert result.value.metadata["cancelled_at"] == now.isoformat()
        assert result.value.metadata["order_id"] == "A-1001"
        mock_uow.commit.assert_awaited_once()

        event = mock_publisher.publish.await_args.args[0]
        assert isinstance(event, ChargeCancelled)
        assert event.charge.status == ChargeStatus.CANCELLED

    async def test_cancel_paid_charge_fails(
        self, cancel_use_case, mock_charge_repo, mock_uow, mock_publisher, make_charge
    ):
        mock_charge_repo.get_by_id.return_value = make_charge(status=ChargeStatus.PAID)

        result = await cancel_use_case.execute(CancelChargeCommandDTO(charge_id=1, reason="x"))

        assert result.is_err()
        assert result.error.code == "CHARGE_CANNOT_BE_CANCELLED"
        mock_charge_repo.apply_changes.assert_not_awaited()
        mock_uow.commit.assert_not_awaited()
        mock_publisher.publish.assert_not_awaited()

    async def test_cancel_twice_fails(self, cancel_use_case, mock_charge_repo, make_charge):
        mock_charge_repo.get_by_id.return_value = make_charge(status=ChargeStatus.CANCELLED)

        result = await cancel_use_case.execute(CancelChargeCommandDTO(charge_id=1, reason="x"))

        assert result.is_err()
        assert result.error.code == "CHARGE_CANNOT_BE_CANCELLED"

    async def test_charge_not_found(self, cancel_use_case):
        result = await cancel_use_case.execute(CancelChargeCommandDTO(charge_id=5, reason="x"))

        assert result.is_err()
        assert result.error.code == "CHARGE_NOT_FOUND"

    async def test_lost_race_reports_conflict(
        self, cancel_use_case, mock_charge_repo, mock_publisher, make_charge
    ):
        mock_charge_repo.get_by_id.return_value = make_charge()
        mock_charge_repo.apply_changes.side_effect = StaleChargeError(1, 1)

        result = await cancel_use_case.execute(CancelChargeCommandDTO(charge_id=1, reason="x"))

        assert result.is_err()
        assert result.error.code == "CHARGE_CONCURRENT_MODIFICATION"
        mock_publisher.publish.assert_not_awaited()
