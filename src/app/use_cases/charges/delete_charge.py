"""DeleteCharge Use Case

Administrative soft delete of a closed charge. Distinct from cancellation:
a pending charge has to be cancelled before it can be deleted, and money that
was settled (paid or refunded) is never hidden.
"""

import logging
from typing import Callable
from datetime import datetime
from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.charge_repository import ChargeRepository, StaleChargeError
from src.domain.base import utcnow
from src.domain.charge_lifecycle import plan_soft_delete
from src.domain.exceptions import ChargeError
from . import errors

logger = logging.getLogger(__name__)


class DeleteCharge:
    """
    Use Case: Soft delete a charge

    Business Rules:
    1. Only CANCELLED, EXPIRED and FAILED charges can be deleted (CHARGE_NOT_DELETABLE)
    2. Deleted charges disappear from every lookup and listing
    3. No event is published
    """

    def __init__(
        self,
        uow: UnitOfWork,
        charge_repo: ChargeRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.charge_repo = charge_repo
        self.clock = clock

    async def execute(self, charge_id: int) -> Result[None]:
        try:
            charge = await self.charge_repo.get_by_id(charge_id, for_update=True)
            if not charge:
                return Return.err(errors.charge_not_found(charge_id))

            changes = plan_soft_delete(charge, self.clock())
            await self.charge_repo.apply_changes(charge.id, charge.version, changes)
            await self.uow.commit()

            logger.info(f"Charge {charge_id} deleted")
            return Return.ok()

        except ChargeError as e:
            await self.uow.rollback()
            return Return.err(errors.from_charge_error(e))
        except StaleChargeError as e:
            await self.uow.rollback()
            return Return.err(errors.concurrent_modification(e))
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                errors.unexpected("DELETE_CHARGE_FAILED", "Failed to delete charge", e)
            )
