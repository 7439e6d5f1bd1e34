"""ReconcileCharge Use Case

Applies a status reported by the payment gateway. This is the only path by
which a charge becomes FAILED, and the only transition that is accepted from
every status: the gateway is the source of truth for settlement.
"""

import logging
from typing import Callable
from datetime import datetime
from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.event_publisher import EventPublisher
from src.app.repositories.charge_repository import ChargeRepository, StaleChargeError
from src.domain.base import to_naive_utc, utcnow
from src.domain.charge_events import event_for_status
from src.domain.charge_lifecycle import plan_reconcile
from src.domain.exceptions import ChargeError
from .dtos import ReconcileChargeCommandDTO, ChargeResponseDTO
from . import errors

logger = logging.getLogger(__name__)


class ReconcileCharge:
    """
    Use Case: Reconcile a charge with its gateway-reported status

    Business Rules:
    1. Accepted from any status
    2. Reported PAID sets paid_at if unset; paid_at is never cleared
    3. Supplied metadata is merged into the audit trail
    4. Idempotent: replaying a report changes nothing but new metadata
    5. An event is published only when the status actually changed
       (ChargePaid / ChargeCancelled / ChargeRefunded / ChargeExpired,
       ChargeUpdated for any other status)

    Flow:
    1. Get charge with lock (SELECT FOR UPDATE)
    2. Diff reported state against the fresh state
    3. Write with version check (skipped when nothing differs)
    4. Commit transaction
    5. Publish status event
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

    async def execute(self, command: ReconcileChargeCommandDTO) -> Result[ChargeResponseDTO]:
        try:
            # Step 1: Lock the charge
            charge = await self.charge_repo.get_by_id(command.charge_id, for_update=True)
            if not charge:
                return Return.err(errors.charge_not_found(command.charge_id))
            previous_status = charge.status

            # Step 2: Diff
            changes = plan_reconcile(
                charge,
                command.reported_status,
                self.clock(),
                metadata=command.metadata,
                reported_paid_at=to_naive_utc(command.reported_paid_at),
            )
            if not changes:
                await self.uow.rollback()
                return Return.ok(ChargeResponseDTO.from_charge(charge))

            # Step 3: Compare-and-swap on version
            reconciled = await self.charge_repo.apply_changes(charge.id, charge.version, changes)

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
            logger.exception(f"Reconciliation of charge {command.charge_id} failed")
            return Return.err(
                errors.unexpected("RECONCILE_CHARGE_FAILED", "Failed to reconcile charge", e)
            )

        # Step 5: Publish after commit, only on a status change
        if reconciled.status != previous_status:
            event_cls = event_for_status(reconciled.status)
            await self.publisher.publish(event_cls.for_charge(reconciled))
            logger.info(
                f"Charge {reconciled.id} reconciled: "
                f"{previous_status.value} -> {reconciled.status.value}"
            )
        return Return.ok(ChargeResponseDTO.from_charge(reconciled))
