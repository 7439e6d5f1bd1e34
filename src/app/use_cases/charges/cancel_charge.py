"""CancelCharge Use Case

Cancels an open charge and records why.
"""

import logging
from typing import Callable
from datetime import datetime
from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.event_publisher import EventPublisher
from src.app.repositories.charge_repository import ChargeRepository, StaleChargeError
from src.domain.base import utcnow
from src.domain.charge_events import ChargeCancelled
from src.domain.charge_lifecycle import plan_cancel
from src.domain.exceptions import ChargeError
from .dtos import CancelChargeCommandDTO, ChargeResponseDTO
from . import errors

logger = logging.getLogger(__name__)


class CancelCharge:
    """
    Use Case: Cancel a charge

    Business Rules:
    1. Paid, cancelled and refunded charges cannot be cancelled (CHARGE_CANNOT_BE_CANCELLED)
    2. metadata gains cancellation_reason and cancelled_at; prior keys are kept
    3. Status change and audit trail commit atomically
    4. ChargeCancelled is published only after commit

    Flow:
    1. Get charge with lock (SELECT FOR UPDATE)
    2. Evaluate guard on the fresh state
    3. Write with version check
    4. Commit transaction
    5. Publish ChargeCancelled
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

    async def execute(self, command: CancelChargeCommandDTO) -> Result[ChargeResponseDTO]:
        try:
            # Step 1: Lock the charge
            charge = await self.charge_repo.get_by_id(command.charge_id, for_update=True)
            if not charge:
                return Return.err(errors.charge_not_found(command.charge_id))

            # Step 2: Guard
            changes = plan_cancel(charge, command.reason, self.clock())

            # Step 3: Compare-and-swap on version
            cancelled = await self.charge_repo.apply_changes(charge.id, charge.version, changes)

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
            logger.exception(f"Cancellation of charge {command.charge_id} failed")
            return Return.err(
                errors.unexpected("CANCEL_CHARGE_FAILED", "Failed to cancel charge", e)
            )

        # Step 5: Publish after commit
        await self.publisher.publish(ChargeCancelled.for_charge(cancelled))
        logger.info(f"Charge {cancelled.id} cancelled: {command.reason}")
        return Return.ok(ChargeResponseDTO.from_charge(cancelled))
