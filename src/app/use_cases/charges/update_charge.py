"""UpdateCharge Use Case

Edits the mutable fields of an open charge.
"""

import logging
from typing import Callable
from datetime import datetime
from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.event_publisher import EventPublisher
from src.app.repositories.charge_repository import ChargeRepository, StaleChargeError
from src.domain.base import utcnow
from src.domain.charge_events import ChargeUpdated
from src.domain.charge_lifecycle import plan_update
from src.domain.exceptions import ChargeError
from .dtos import UpdateChargeCommandDTO, ChargeResponseDTO
from . import errors

logger = logging.getLogger(__name__)


class UpdateCharge:
    """
    Use Case: Update amount, description, due date or metadata of a charge

    Business Rules:
    1. Paid, cancelled and refunded charges cannot be modified (CHARGE_NOT_UPDATABLE)
    2. Supplied fields are validated like on creation
    3. Metadata is merged into the audit trail, never replaced
    4. Status, customer and payment method never change
    5. An update that supplies no fields is a no-op success without an event

    Flow:
    1. Get charge with lock (SELECT FOR UPDATE)
    2. Plan changes against the fresh state
    3. Write with version check
    4. Commit transaction
    5. Publish ChargeUpdated
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

    async def execute(self, command: UpdateChargeCommandDTO) -> Result[ChargeResponseDTO]:
        try:
            # Step 1: Lock the charge
            charge = await self.charge_repo.get_by_id(command.charge_id, for_update=True)
            if not charge:
                return Return.err(errors.charge_not_found(command.charge_id))

            # Step 2: Guard + validate
            changes = plan_update(
                charge,
                today=self.clock().date(),
                amount=command.amount,
                description=command.description,
                due_date=command.due_date,
                metadata=command.metadata,
            )
            if not changes:
                await self.uow.rollback()
                return Return.ok(ChargeResponseDTO.from_charge(charge))

            # Step 3: Compare-and-swap on version
            updated = await self.charge_repo.apply_changes(charge.id, charge.version, changes)

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
            logger.exception(f"Update of charge {command.charge_id} failed")
            return Return.err(
                errors.unexpected("UPDATE_CHARGE_FAILED", "Failed to update charge", e)
            )

        # Step 5: Publish after commit
        await self.publisher.publish(ChargeUpdated.for_charge(updated))
        return Return.ok(ChargeResponseDTO.from_charge(updated))
