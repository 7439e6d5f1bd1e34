"""SQL-backed customer directory

Answers existence and eligibility questions from the customers table.
"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.customer_directory import CustomerDirectory, CustomerEligibility
from src.domain.customer import Customer, CustomerStatus


class SqlAlchemyCustomerDirectory(CustomerDirectory):
    """
    Customer directory backed by the customers table

    Eligibility policy: not soft-deleted and not blocked. Inactive customers
    may still be charged.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, customer_id: int) -> Optional[Customer]:
        stmt = select(Customer).where(
            Customer.id == customer_id,
            Customer.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def check_eligibility(self, customer_id: int) -> CustomerEligibility:
        customer = await self.get_by_id(customer_id)
        if customer is None:
            return CustomerEligibility.NOT_FOUND
        if customer.status == CustomerStatus.BLOCKED:
            return CustomerEligibility.INELIGIBLE
        return CustomerEligibility.ELIGIBLE
