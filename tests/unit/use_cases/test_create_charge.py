"""Unit tests for CreateCharge use case

Tests cover:
- Successful creation (PENDING, paid_at unset, ChargeCreated after commit)
- Customer not found / not eligible
- Invalid amount and due date leave no write behind
- Duplicate gateway reference
"""

import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.repositories.charge_repository import DuplicateGatewayChargeError
from src.app.services.customer_directory import CustomerEligibility
from src.app.use_cases.charges.create_charge import CreateCharge
from src.app.use_cases.charges.dtos import CreateChargeCommandDTO
from src.domain.charge import ChargeStatus, PaymentMethod
from src.domain.charge_events import ChargeCreated


@pytest.fixture
def mock_customer_directory():
    directory = MagicMock()
    directory.check_eligibility = AsyncMock(return_value=CustomerEligibility.ELIGIBLE)
    return directory


@pytest.fixture
def create_use_case(mock_uow, mock_charge_repo, mock_customer_directory, mock_publisher, clock):
    return CreateCharge(
        uow=mock_uow,
        charge_repo=mock_charge_repo,
        customer_directory=mock_customer_directory,
        publisher=mock_publisher,
        clock=clock,
    )


@pytest.fixture
def sample_command(today):
    return CreateChargeCommandDTO(
        customer_id=42,
        amount=Decimal("150.50"),
        description="Monthly subscription",
        payment_method=PaymentMethod.PIX,
        due_date=today + timedelta(days=7),
        metadata={"order_id": "A-1001"},
    )


def _persist_with_id(charge):
    charge.id = 10
    return charge


@pytest.mark.asyncio
class TestCreateChargeSuccess:

    async def test_creates_pending_charge(
        self, create_use_case, mock_charge_repo, mock_uow, mock_publisher, sample_command
    ):
        """
        Given: An eligible customer and valid fields
        When: A charge is created
        Then: It is persisted PENDING without paid_at, committed, and announced
        """
        # Arrange
        mock_charge_repo.create.side_effect = _persist_with_id

        # Act
        result = await create_use_case.execute(sample_command)

        # Assert
        assert result.is_ok()
        charge = result.value
        assert charge.id == 10
        assert charge.status == ChargeStatus.PENDING
        assert charge.paid_at is None
        assert charge.amount == Decimal("150.50")
        assert charge.payment_method == PaymentMethod.PIX
        assert charge.metadata == {"order_id": "A-1001"}

        mock_uow.commit.assert_awaited_once()
        mock_publisher.publish.assert_awaited_once()
        event = mock_publisher.publish.await_args.args[0]
        assert isinstance(event, ChargeCreated)
        assert event.charge.id == 10

    async def test_due_today_is_accepted(
        self, create_use_case, mock_charge_repo, sample_command, today
    ):
        mock_charge_repo.create.side_effect = _persist_with_id
        command = sample_command.model_copy(update={"due_date": today})

        result = await create_use_case.execute(command)

        assert result.is_ok()
        assert result.value.due_date == today


@pytest.mark.asyncio
class TestCreateChargeRejected:

    async def test_customer_not_found(
        self, create_use_case, mock_customer_directory, mock_charge_repo, mock_publisher, sample_command
    ):
        mock_customer_directory.check_eligibility.return_value = CustomerEligibility.NOT_FOUND

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "CUSTOMER_NOT_FOUND"
        mock_charge_repo.create.assert_not_awaited()
        mock_publisher.publish.assert_not_awaited()

    async def test_customer_not_eligible(
        self, create_use_case, mock_customer_directory, mock_charge_repo, sample_command
    ):
        mock_customer_directory.check_eligibility.return_value = CustomerEligibility.INELIGIBLE

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "CUSTOMER_NOT_ELIGIBLE"
        mock_charge_repo.create.assert_not_awaited()

    @pytest.mark.parametrize("amount", ["0", "-10.00"])
    async def test_non_positive_amount(
        self, create_use_case, mock_charge_repo, mock_uow, mock_publisher, sample_command, amount
    ):
        command = sample_command.model_copy(update={"amount": Decimal(amount)})

        result = await create_use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "INVALID_AMOUNT"
        mock_charge_repo.create.assert_not_awaited()
        mock_uow.commit.assert_not_awaited()
        mock_publisher.publish.assert_not_awaited()

    async def test_due_date_yesterday(
        self, create_use_case, mock_charge_repo, mock_uow, sample_command, today
    ):
        command = sample_command.model_copy(update={"due_date": today - timedelta(days=1)})

        result = await create_use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "INVALID_DUE_DATE"
        mock_charge_repo.create.assert_not_awaited()
        mock_uow.rollback.assert_awaited()

    async def test_gateway_reference_already_linked(
        self, create_use_case, mock_charge_repo, make_charge, sample_command
    ):
        mock_charge_repo.get_by_gateway_charge_id.return_value = make_charge(
            id=3, gateway_charge_id="ch_1"
        )
        command = sample_command.model_copy(update={"gateway_charge_id": "ch_1"})

        result = await create_use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "GATEWAY_CHARGE_ID_TAKEN"
        mock_charge_repo.create.assert_not_awaited()

    async def test_gateway_reference_taken_by_concurrent_insert(
        self, create_use_case, mock_charge_repo, mock_uow, mock_publisher, sample_command
    ):
        """
        Given: The pre-check finds no charge with ch_1
        When: The insert hits the unique constraint anyway
        Then: GATEWAY_CHARGE_ID_TAKEN, rolled back, nothing published
        """
        mock_charge_repo.create.side_effect = DuplicateGatewayChargeError("ch_1")
        command = sample_command.model_copy(update={"gateway_charge_id": "ch_1"})

        result = await create_use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "GATEWAY_CHARGE_ID_TAKEN"
        mock_uow.rollback.assert_awaited_once()
        mock_publisher.publish.assert_not_awaited()

    async def test_unexpected_error_rolls_back(
        self, create_use_case, mock_charge_repo, mock_uow, mock_publisher, sample_command
    ):
        mock_charge_repo.create.side_effect = Exception("Database error")

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "CREATE_CHARGE_FAILED"
        assert result.error.reason == "Database error"
        mock_uow.rollback.assert_awaited_once()
        mock_publisher.publish.assert_not_awaited()
