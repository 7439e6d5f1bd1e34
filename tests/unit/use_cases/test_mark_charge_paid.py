"""Unit tests for MarkChargePaid use case"""

import pytest
from datetime import datetime, timedelta, timezone

from src.app.use_cases.charges.mark_charge_paid import MarkChargePaid
from src.app.use_cases.charges.dtos import MarkChargePaidCommandDTO
from src.domain.charge import ChargeStatus
from src.domain.charge_events import ChargePaid


@pytest.fixture
def pay_use_case(mock_uow, mock_charge_repo, mock_publisher, clock):
    return MarkChargePaid(mock_uow, mock_charge_repo, mock_publisher, clock=clock)


@pytest.mark.asyncio
class TestMarkChargePaid:

    async def test_pending_charge_becomes_paid(
        self, pay_use_case, mock_charge_repo, mock_uow, mock_publisher, make_charge, apply_to, now
    ):
        charge = make_charge()
        mock_charge_repo.get_by_id.return_value = charge
        mock_charge_repo.apply_changes.side_effect = apply_to(charge)

        result = await pay_use_case.execute(MarkChargePaidCommandDTO(charge_id=1))

        assert result.is_ok()
        assert result.value.status == ChargeStatus.PAID
        assert result.value.paid_at == now
        mock_uow.commit.assert_awaited_once()
        assert isinstance(mock_publisher.publish.await_args.args[0], ChargePaid)

    async def test_aware_paid_at_is_stored_as_utc(
        self, pay_use_case, mock_charge_repo, make_charge, apply_to
    ):
        charge = make_charge()
        mock_charge_repo.get_by_id.return_value = charge
        mock_charge_repo.apply_changes.side_effect = apply_to(charge)
        paid_at = datetime(2024, 1, 31, 9, 0, tzinfo=timezone(timedelta(hours=-3)))

        result = await pay_use_case.execute(MarkChargePaidCommandDTO(charge_id=1, paid_at=paid_at))

        assert result.value.paid_at == datetime(2024, 1, 31, 12, 0)

    async def test_already_paid_is_idempotent(
        self, pay_use_case, mock_charge_repo, mock_uow, mock_publisher, make_charge, now
    ):
        """
        Given: A charge already PAID
        When: MarkPaid is called again
        Then: Success, paid_at from the first call kept, nothing written, no event
        """
        first_paid_at = now - timedelta(days=2)
        mock_charge_repo.get_by_id.return_value = make_charge(
            status=ChargeStatus.PAID, paid_at=first_paid_at
        )

        result = await pay_use_case.execute(MarkChargePaidCommandDTO(charge_id=1))

        assert result.is_ok()
        assert result.value.paid_at == first_paid_at
        mock_charge_repo.apply_changes.assert_not_awaited()
        mock_uow.commit.assert_not_awaited()
        mock_publisher.publish.assert_not_awaited()

    @pytest.mark.parametrize("status", [ChargeStatus.CANCELLED, ChargeStatus.REFUNDED])
    async def test_closed_charge_cannot_be_paid(
        self, pay_use_case, mock_charge_repo, mock_publisher, make_charge, status
    ):
        mock_charge_repo.get_by_id.return_value = make_charge(status=status)

        result = await pay_use_case.execute(MarkChargePaidCommandDTO(charge_id=1))

        assert result.is_err()
        assert result.error.code == "CHARGE_CANNOT_BE_CANCELLED"
        mock_publisher.publish.assert_not_awaited()

    async def test_charge_not_found(self, pay_use_case):
        result = await pay_use_case.execute(MarkChargePaidCommandDTO(charge_id=7))

        assert result.is_err()
        assert result.error.code == "CHARGE_NOT_FOUND"
