import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.domain.charge import Charge, ChargeStatus, PaymentMethod

NOW = datetime(2024, 2, 1, 12, 0, 0)
TODAY = NOW.date()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    """Frozen clock injected into use cases"""
    return lambda: NOW


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_publisher():
    """Mock event publisher"""
    publisher = MagicMock()
    publisher.publish = AsyncMock()
    return publisher


@pytest.fixture
def mock_charge_repo():
    """Mock charge repository"""
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=None)
    repo.get_by_gateway_charge_id = AsyncMock(return_value=None)
    repo.create = AsyncMock()
    repo.apply_changes = AsyncMock()
    repo.list = AsyncMock(return_value=[])
    repo.count = AsyncMock(return_value=0)
    repo.list_overdue = AsyncMock(return_value=[])
    repo.list_pending_with_gateway = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def make_charge():
    """Factory for Charge entities with sensible defaults"""

    def _make(**overrides) -> Charge:
        data = dict(
            id=1,
            customer_id=42,
            amount=Decimal("150.50"),
            description="Monthly subscription",
            payment_method=PaymentMethod.PIX,
            status=ChargeStatus.PENDING,
            due_date=TODAY + timedelta(days=7),
            paid_at=None,
            metadata_={"order_id": "A-1001"},
            version=1,
            created_at=NOW,
            updated_at=NOW,
        )
        data.update(overrides)
        return Charge(**data)

    return _make


@pytest.fixture
def apply_to():
    """
    Build an apply_changes side effect that returns `charge` with the
    planned changes written and the version bumped
    """

    def _apply_to(charge: Charge):
        async def _apply(charge_id, expected_version, changes):
            data = charge.model_dump()
            data.update(changes)
            data["version"] = expected_version + 1
            return Charge(**data)

        return _apply

    return _apply_to
