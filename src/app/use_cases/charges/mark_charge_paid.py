"""MarkChargePaid Use Case

Records that a charge was settled.
"""

import logging
from typing import Callable
from datetime import datetime
from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.event_publisher import EventPublisher
from src.app.repositories.charge_repository import ChargeRepository, StaleChargeError
from src.domain.base import to_naive_utc, utcnow
from src.domain.charge_events import ChargePaid
from src.domain.charge_lifecycle import plan_mark_paid
from src.domain.exceptions import ChargeError
from .dtos import MarkChargePaidCommandDTO, ChargeResponseDTO
from . import errors

logger = logging.getLogger(__name__)


class MarkChargePaid:
    """
    Use Case: Mark a charge as paid

    Business Rules:
    1. Allowed from PENDING, EXPIRED and FAILED
    2. Cancelled and refunded charges are rejected (CHARGE_CANNOT_BE_CANCELLED)
    3. Already PAID is an idempotent success: nothing is written, no event
    4. paid_at is set once, the first time the charge becomes paid

    Flow:
    1. Get charge with lock (SELECT FOR UPDATE)
    2. Evaluate guard on the fresh state
    3. Write with version check
    4. Commit transaction
    5. Publish ChargePaid
    """

    def __init__(
        self,
        uow: UnitOfWork,
        charge_repo: ChargeRepository,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.charge_repo = charge_repo
        self.publisher = publisher
        self.clock = clock

    async def execute(self, command: MarkChargePaidCommandDTO) -> Result[ChargeResponseDTO]:
        try:
            # Step 1: Lock the charge
            charge = await self.charge_repo.get_by_id(command.charge_id, for_update=True)
            if not charge:
                return Return.err(errors.charge_not_found(command.charge_id))

            # Step 2: Guard
            changes = plan_mark_paid(charge, self.clock(), to_naive_utc(command.paid_at))
            if not changes:
                # Already paid - idempotent response
                await self.uow.rollback()
                return Return.ok(ChargeResponseDTO.from_charge(charge))

            # Step 3: Compare-and-swap on version
            paid = await self.charge_repo.apply_changes(charge.id, charge.version, changes)

            # Step 4: Commit
            await self.uow.commit()

        except ChargeError as e:
            await self.uow.rollback()
            return Return.err(errors.from_charge_error(e))
        except StaleChargeError as e:
            await self.uow.rollback()
            return Return.err(errors.concurrent_modification(e))
        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"Payment of charge {command.charge_id} failed")
            return Return.err(
                errors.unexpected("MARK_CHARGE_PAID_FAILED", "Failed to mark charge as paid", e)
            )

        # Step 5: Publish after commit
        await self.publisher.publish(ChargePaid.for_charge(paid))
        logger.info(f"Charge {paid.id} paid at {paid.paid_at.isoformat()}")
        return Return.ok(ChargeResponseDTO.from_charge(paid))
