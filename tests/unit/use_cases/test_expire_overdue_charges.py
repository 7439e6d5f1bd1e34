"""Unit tests for ExpireOverdueCharges use case (expiry sweep)"""

import pytest
from datetime import timedelta

from src.app.repositories.charge_repository import StaleChargeError
from src.app.use_cases.charges.expire_overdue_charges import ExpireOverdueCharges
from src.domain.charge import Charge, ChargeStatus
from src.domain.charge_events import ChargeExpired


@pytest.fixture
def expire_use_case(mock_uow, mock_charge_repo, mock_publisher, clock):
    return ExpireOverdueCharges(mock_uow, mock_charge_repo, mock_publisher, clock=clock)


@pytest.mark.asyncio
class TestExpireOverdueCharges:

    async def test_expires_every_overdue_pending_charge(
        self, expire_use_case, mock_charge_repo, mock_uow, mock_publisher, make_charge, today, now
    ):
        charges = {
            1: make_charge(id=1, due_date=today - timedelta(days=3)),
            2: make_charge(id=2, due_date=today - timedelta(days=1)),
        }
        mock_charge_repo.list_overdue.return_value = list(charges.values())

        async def _get(charge_id, for_update=False):
            return charges[charge_id]

        async def _apply(charge_id, expected_version, changes):
            data = charges[charge_id].model_dump()
            data.update(changes)
            data["version"] = expected_version + 1
            return Charge(**data)

        mock_charge_repo.get_by_id.side_effect = _get
        mock_charge_repo.apply_changes.side_effect = _apply

        result = await expire_use_case.execute(batch_size=50)

        assert result.is_ok()
        summary = result.value
        assert summary.as_of == today
        assert summary.total_checked == 2
        assert summary.expired_count == 2
        assert summary.failed_count == 0
        assert summary.expired_charge_ids == [1, 2]

        mock_charge_repo.list_overdue.assert_awaited_once_with(today, limit=50)
        assert mock_uow.commit.await_count == 2
        events = [call.args[0] for call in mock_publisher.publish.await_args_list]
        assert all(isinstance(event, ChargeExpired) for event in events)
        assert events[0].charge.status == ChargeStatus.EXPIRED

        _, _, changes = mock_charge_repo.apply_changes.await_args_list[0].args
        assert changes["metadata_"]["expired_at"] == now.isoformat()

    async def test_charge_paid_since_listing_is_skipped(
        self, expire_use_case, mock_charge_repo, mock_uow, mock_publisher, make_charge, today
    ):
        """
        Given: A charge listed as overdue that was paid before it got locked
        When: The sweep reaches it
        Then: It is skipped without counting as a failure
        """
        overdue = make_charge(due_date=today - timedelta(days=2))
        mock_charge_repo.list_overdue.return_value = [overdue]
        mock_charge_repo.get_by_id.return_value = make_charge(
            due_date=today - timedelta(days=2), status=ChargeStatus.PAID
        )

        result = await expire_use_case.execute()

        assert result.is_ok()
        assert result.value.expired_count == 0
        assert result.value.failed_count == 0
        mock_charge_repo.apply_changes.assert_not_awaited()
        mock_uow.rollback.assert_awaited_once()
        mock_publisher.publish.assert_not_awaited()

    async def test_stale_charge_is_skipped(
        self, expire_use_case, mock_charge_repo, mock_publisher, make_charge, today
    ):
        overdue = make_charge(due_date=today - timedelta(days=2))
        mock_charge_repo.list_overdue.return_value = [overdue]
        mock_charge_repo.get_by_id.return_value = overdue
        mock_charge_repo.apply_changes.side_effect = StaleChargeError(1, 1)

        result = await expire_use_case.execute()

        assert result.value.expired_count == 0
        assert result.value.failed_count == 0
        mock_publisher.publish.assert_not_awaited()

    async def test_failure_does_not_stop_the_batch(
        self, expire_use_case, mock_charge_repo, make_charge, today, apply_to
    ):
        first = make_charge(id=1, due_date=today - timedelta(days=2))
        second = make_charge(id=2, due_date=today - timedelta(days=2))
        mock_charge_repo.list_overdue.return_value = [first, second]
        mock_charge_repo.get_by_id.side_effect = [Exception("deadlock"), second]
        mock_charge_repo.apply_changes.side_effect = apply_to(second)

        result = await expire_use_case.execute()

        assert result.is_ok()
        assert result.value.failed_count == 1
        assert result.value.expired_charge_ids == [2]

    async def test_listing_failure(self, expire_use_case, mock_charge_repo):
        mock_charge_repo.list_overdue.side_effect = Exception("db down")

        result = await expire_use_case.execute()

        assert result.is_err()
        assert result.error.code == "EXPIRE_OVERDUE_CHARGES_FAILED"
