"""ListCharges Use Case

Paginated charge listing, newest first.
"""

from datetime import date
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.repositories.charge_repository import ChargeRepository, ChargeFilter
from src.domain.base import utc_today
from src.domain.charge import ChargeStatus
from .dtos import ListChargesQueryDTO, ChargeListResponseDTO, ChargeResponseDTO


class ListCharges:
    """
    Use Case: List charges with filtering and pagination

    Business Rules:
    1. Filters: statuses, customer_id, created date range (inclusive)
    2. overdue=True lists only pending charges past their due date
    3. Soft-deleted charges are never listed
    4. date_from must not be after date_to (INVALID_DATE_RANGE)
    """

    def __init__(
        self,
        charge_repo: ChargeRepository,
        today: Callable[[], date] = utc_today,
    ):
        self.charge_repo = charge_repo
        self.today = today

    async def execute(self, query: Optional[ListChargesQueryDTO] = None) -> Result[ChargeListResponseDTO]:
        query = query or ListChargesQueryDTO()

        if query.date_from and query.date_to and query.date_from > query.date_to:
            return Return.err(
                Error(
                    code="INVALID_DATE_RANGE",
                    message="date_from must be on or before date_to",
                    reason=f"date_from={query.date_from}, date_to={query.date_to}",
                )
            )

        criteria = ChargeFilter(
            statuses=list(query.statuses),
            customer_id=query.customer_id,
            date_from=query.date_from,
            date_to=query.date_to,
            limit=query.limit,
            offset=query.offset,
        )
        if query.overdue:
            criteria.statuses = [ChargeStatus.PENDING]
            criteria.due_before = self.today()

        try:
            charges = await self.charge_repo.list(criteria)
            total = await self.charge_repo.count(criteria)
        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_CHARGES_FAILED",
                    message="Failed to list charges",
                    reason=str(e),
                )
            )

        return Return.ok(
            ChargeListResponseDTO(
                items=[ChargeResponseDTO.from_charge(c) for c in charges],
                total=total,
                limit=query.limit,
                offset=query.offset,
            )
        )
