"""SQLAlchemy implementation of ChargeRepository

Persists charges with pessimistic row locking on reads and a version
compare-and-swap on writes, so two concurrent transitions on the same charge
can never both commit.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.charge_repository import (
    ChargeRepository,
    ChargeFilter,
    StaleChargeError,
    DuplicateGatewayChargeError,
)
from src.domain.base import utcnow
from src.domain.charge import Charge, ChargeStatus


class SqlAlchemyChargeRepository(ChargeRepository):
    """
    SQLAlchemy implementation of ChargeRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE (ignored by SQLite)
    - Optimistic version check on every UPDATE
    - Soft-deleted rows filtered out of every query
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _live(self):
        return select(Charge).where(Charge.deleted_at.is_(None))

    async def get_by_id(self, charge_id: int, for_update: bool = False) -> Optional[Charge]:
        """
        Retrieve charge by ID with optional row-level locking

        Args:
            charge_id: Charge ID
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Charge if found, None otherwise
        """
        stmt = self._live().where(Charge.id == charge_id)

        if for_update:
            # Always read the committed row, not a copy cached in the session
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_gateway_charge_id(self, gateway_charge_id: str) -> Optional[Charge]:
        stmt = self._live().where(Charge.gateway_charge_id == gateway_charge_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, charge: Charge) -> Charge:
        """
        Create a new charge

        Args:
            charge: Charge entity to persist

        Returns:
            Created Charge with generated ID

        Raises:
            DuplicateGatewayChargeError: If gateway_charge_id already exists
        """
        self.session.add(charge)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if charge.gateway_charge_id and "gateway_charge_id" in str(e.orig):
                raise DuplicateGatewayChargeError(charge.gateway_charge_id) from e
            raise
        await self.session.refresh(charge)
        return charge

    async def apply_changes(
        self, charge_id: int, expected_version: int, changes: Dict[str, Any]
    ) -> Charge:
        """
        Compare-and-swap write on (id, version)

        Note:
            Should be called within a transaction, after get_by_id(for_update=True)
        """
        values = {getattr(Charge, key): value for key, value in changes.items()}
        values[Charge.version] = Charge.version + 1
        values[Charge.updated_at] = utcnow()

        stmt = (
            update(Charge)
            .where(
                Charge.id == charge_id,
                Charge.version == expected_version,
                Charge.deleted_at.is_(None),
            )
            .values(values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            raise StaleChargeError(charge_id, expected_version)

        reload = (
            select(Charge)
            .where(Charge.id == charge_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(reload)
        return result.scalar_one()

    def _apply_filter(self, statement, criteria: ChargeFilter):
        if criteria.statuses:
            statement = statement.where(Charge.status.in_(list(criteria.statuses)))
        if criteria.customer_id is not None:
            statement = statement.where(Charge.customer_id == criteria.customer_id)
        if criteria.date_from:
            statement = statement.where(
                Charge.created_at >= datetime.combine(criteria.date_from, time.min)
            )
        if criteria.date_to:
            # Inclusive: everything before the start of the following day
            statement = statement.where(
                Charge.created_at < datetime.combine(criteria.date_to + timedelta(days=1), time.min)
            )
        if criteria.due_before:
            statement = statement.where(Charge.due_date < criteria.due_before)
        return statement

    async def list(self, criteria: ChargeFilter) -> List[Charge]:
        """
        List charges matching criteria

        Returns:
            Charges ordered by created_at descending (newest first)
        """
        statement = self._apply_filter(self._live(), criteria)
        statement = statement.order_by(Charge.created_at.desc(), Charge.id.desc())
        statement = statement.limit(criteria.limit).offset(criteria.offset)

        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count(self, criteria: ChargeFilter) -> int:
        statement = (
            select(func.count())
            .select_from(Charge)
            .where(Charge.deleted_at.is_(None))
        )
        statement = self._apply_filter(statement, criteria)
        result = await self.session.execute(statement)
        return result.scalar_one()

    async def list_overdue(self, today: date, limit: int = 500) -> List[Charge]:
        statement = (
            self._live()
            .where(Charge.status == ChargeStatus.PENDING, Charge.due_date < today)
            .order_by(Charge.due_date.asc(), Charge.id.asc())
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_pending_with_gateway(self, limit: int = 200) -> List[Charge]:
        statement = (
            self._live()
            .where(
                Charge.status == ChargeStatus.PENDING,
                Charge.gateway_charge_id.is_not(None),
            )
            .order_by(Charge.updated_at.asc(), Charge.id.asc())
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
